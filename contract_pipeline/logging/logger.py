import logging
import sys


class Log:
    """Process-wide logging facade for the contract pipeline.

    Keyword arguments travel as ``extra`` fields so structured handlers can
    pick them up; the default stdout handler only renders the message.
    """

    _logger: logging.Logger = logging.getLogger("contract_pipeline")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level and attach a stdout handler once."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def debug(cls, message: str, **fields: object) -> None:
        cls._logger.debug(message, extra=fields)

    @classmethod
    def info(cls, message: str, **fields: object) -> None:
        cls._logger.info(message, extra=fields)

    @classmethod
    def warning(cls, message: str, **fields: object) -> None:
        cls._logger.warning(message, extra=fields)

    @classmethod
    def error(cls, message: str, **fields: object) -> None:
        cls._logger.error(message, extra=fields)

    @classmethod
    def exception(cls, message: str, **fields: object) -> None:
        """Log at error level with the active exception's traceback."""
        cls._logger.exception(message, extra=fields)
