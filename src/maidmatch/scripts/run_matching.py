"""
Script para ejecutar un matching para un sponsor.

Busca las maids que mejor matchean con el sponsor y las imprime
como JSON ordenadas por score ajustado.

Uso:
    python -m maidmatch.scripts.run_matching --sponsor-id <ID>
    python -m maidmatch.scripts.run_matching --sponsor-id <ID> --limit 5 --preferences '{"languages": ["Arabic"]}'
"""

import argparse
import asyncio
import json
import logging
import sys

import structlog

from maidmatch.config import get_settings
from maidmatch.database import MaidRepository, MatchingHistoryRepository, SponsorRepository
from maidmatch.exceptions import NotFoundError
from maidmatch.matching import MatchingEngine, MatchResult

# Configurar logging
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s",
    stream=sys.stderr,
    force=True,
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def _to_payload(match: MatchResult) -> dict:
    return {
        "candidate_id": match.candidate_id,
        "score": round(match.score, 4),
        "adjusted_score": round(match.adjusted_score, 4),
        "confidence": round(match.confidence, 4),
        "breakdown": {k: round(v, 4) for k, v in match.breakdown.items()},
        "reasons": match.reasons,
    }


async def run_matching(sponsor_id: str, limit: int, preferences: dict) -> list[MatchResult]:
    """Arma el motor con los repositorios de Supabase y ejecuta un matching."""
    engine = MatchingEngine(
        requesters=SponsorRepository(),
        candidates=MaidRepository(),
        history=MatchingHistoryRepository(),
    )
    return await engine.find_matches(sponsor_id, preferences=preferences, limit=limit)


def main():
    """Entry point del script."""
    parser = argparse.ArgumentParser(
        description="Rankea maids para un sponsor y muestra los resultados como JSON"
    )
    parser.add_argument("--sponsor-id", required=True, help="ID del sponsor")
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.default_match_limit,
        help="Máximo de resultados",
    )
    parser.add_argument(
        "--preferences",
        default="{}",
        help="JSON con preferencias que pisan a las guardadas del sponsor",
    )
    args = parser.parse_args()

    try:
        preferences = json.loads(args.preferences)
    except json.JSONDecodeError as e:
        parser.error(f"--preferences no es JSON válido: {e}")

    logger.info("Iniciando matching...", sponsor_id=args.sponsor_id, limit=args.limit)

    try:
        matches = asyncio.run(run_matching(args.sponsor_id, args.limit, preferences))
    except KeyboardInterrupt:
        logger.info("Matching interrumpido por usuario")
        sys.exit(130)
    except NotFoundError as e:
        logger.error("Sponsor no encontrado", error=str(e))
        sys.exit(2)
    except Exception as e:
        logger.error("Error fatal en matching", error=str(e))
        sys.exit(1)

    print(json.dumps([_to_payload(m) for m in matches], ensure_ascii=False, indent=2))
    logger.info("Matching completado", matches=len(matches))
    sys.exit(0)


if __name__ == "__main__":
    main()
