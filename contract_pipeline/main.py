import argparse
import json
import sys
import uuid

from contract_pipeline.analysis.exceptions import AnalysisError
from contract_pipeline.config.settings import Settings
from contract_pipeline.database.connection import close_pool
from contract_pipeline.detection.models import ContractType
from contract_pipeline.idempotency.exceptions import IdempotencyError
from contract_pipeline.llm.exceptions import LlmError
from contract_pipeline.llm.factory import LlmClientFactory
from contract_pipeline.logging.logger import Log
from contract_pipeline.normalization.exceptions import NormalizationError
from contract_pipeline.orchestrator.exceptions import LedgerError
from contract_pipeline.orchestrator.models import AnalysisRequest
from contract_pipeline.orchestrator.orchestrator import build_orchestrator
from contract_pipeline.pdf.exceptions import PdfExtractionError
from contract_pipeline.processor.processor import build_processor
from contract_pipeline.storage.exceptions import StorageError

DOMAIN_ERRORS = (
    PdfExtractionError,
    NormalizationError,
    StorageError,
    AnalysisError,
    LlmError,
    IdempotencyError,
    LedgerError,
)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="contract-pipeline",
        description="Prepare a stored contract PDF and run the paid analysis once.",
    )
    parser.add_argument("path", help="object path below STORAGE_ROOT")
    parser.add_argument("--account", required=True, help="account id, or guest id with --guest")
    parser.add_argument("--guest", action="store_true")
    parser.add_argument("--password", default=None)
    parser.add_argument("--idempotency-key", default=None)
    parser.add_argument("--discard", action="store_true", help="delete the PDF afterwards")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Entry point: prepare text -> analyze -> print the outcome as JSON."""
    args = _parse_args(argv)
    settings = settings or Settings()
    Log.configure(settings.log_level)

    try:
        client = LlmClientFactory.create(settings)
        processor = build_processor(settings, client=client)
        prepared = processor.prepare(args.path, password=args.password)
        detection = prepared.detection

        orchestrator = build_orchestrator(settings, client=client)
        outcome = orchestrator.run(
            AnalysisRequest(
                account_ref=args.account,
                is_guest=args.guest,
                clean_text=prepared.clean_text,
                contract_type=detection.type if detection else ContractType.OTHER,
                filename=args.path.rsplit("/", 1)[-1],
                idempotency_key=args.idempotency_key or str(uuid.uuid4()),
                type_confidence=detection.confidence if detection else None,
            )
        )
        if args.discard:
            processor.discard(args.path)
    except DOMAIN_ERRORS as exc:
        Log.error(f"Analysis of {args.path} failed: [{exc.code}] {exc}")
        print(json.dumps({"error": exc.code, "message": str(exc)}, ensure_ascii=False))
        return 1
    finally:
        close_pool()

    print(
        json.dumps(
            {
                "analysisId": outcome.analysis_id,
                "replay": outcome.is_replay,
                "remainingBalance": outcome.remaining_balance,
                "contractType": detection.type.value if detection else ContractType.OTHER.value,
                "pageCount": prepared.page_count,
                "analysis": outcome.analysis_payload,
            },
            ensure_ascii=False,
        )
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
