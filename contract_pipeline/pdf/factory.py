from contract_pipeline.config.settings import Settings
from contract_pipeline.pdf.base import BasePdfEngine
from contract_pipeline.pdf.pdfplumber_adapter import PdfPlumberAdapter
from contract_pipeline.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfEngineFactory:
    """Creates the PDF engine named by settings."""

    ADAPTERS: dict[str, type[BasePdfEngine]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfEngine:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()
