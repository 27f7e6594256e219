import logging
import re
import traceback
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Generic, TypeVar, cast

import structlog
from structlog.dev import plain_traceback

from pricing.settings import Settings

RendererType = TypeVar("RendererType")

Logger = structlog.stdlib.BoundLogger


class Logging(Generic[RendererType]):
    """Pricing server logging configurator of `structlog` and `logging`.

    Customized implementation inspired by the following documentation:
    https://www.structlog.org/en/stable/standard-library.html#rendering-using-structlog-based-formatters-within-logging

    """

    timestamper = structlog.processors.TimeStamper(fmt="iso")

    @classmethod
    def get_level(cls, settings: Settings) -> str:
        return settings.LOG_LEVEL

    @classmethod
    def is_debug(cls, settings: Settings) -> bool:
        return settings.DEBUG

    @classmethod
    def debug_loggers(cls, settings: Settings) -> list[str]:
        if cls.is_debug(settings):
            return ["redis", "aiohttp.client"]
        return []

    @classmethod
    def get_common_processors(cls) -> list[Any]:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
            cls.timestamper,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S.%f %Z", utc=False),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.UnicodeDecoder(),
            structlog.processors.StackInfoRenderer(),
        ]

    @classmethod
    def get_structlog_processors(cls) -> list[Any]:
        return cls.get_common_processors() + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ]

    @classmethod
    def get_renderer(cls) -> RendererType:
        raise NotImplementedError()

    @classmethod
    def get_file_renderer(cls) -> RendererType:
        raise NotImplementedError()

    @classmethod
    def get_third_party_loggers(cls, settings: Settings) -> list[str]:
        loggers_list = ["asyncio"] + cls.debug_loggers(settings)
        loggers_list.append("uvicorn" if not settings.is_production() else "uvicorn.error")
        return loggers_list

    @classmethod
    def get_custom_level(cls, level: str, module: str) -> str | int:
        match module:
            case "asyncio":
                return logging.INFO
            case "uvicorn" | "uvicorn.error":
                return logging.INFO
            case _:
                return level

    @classmethod
    def configure_stdlib(cls, *, settings: Settings) -> None:
        level = cls.get_level(settings)
        console_formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=cls.get_common_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                cast(structlog.typing.Processor, cls.get_renderer()),
            ],
        )
        file_formatter = structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=cls.get_common_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                cast(structlog.typing.Processor, cls.get_file_renderer()),
            ],
        )
        console_handler = logging.StreamHandler()
        console_handler.set_name("default")
        console_handler.setLevel(level)
        console_handler.setFormatter(console_formatter)
        third_party_loggers = cls.get_third_party_loggers(settings)
        for logger_name in logging.root.manager.loggerDict:
            if logger_name.startswith("pricing"):
                continue
            logger = logging.getLogger(logger_name)
            is_enabled = logger_name in third_party_loggers
            is_third_party_child = any(logger_name.startswith(parent + ".") for parent in third_party_loggers)
            if is_enabled or is_third_party_child:
                logger.setLevel(cls.get_custom_level(level, logger_name) if is_enabled else logging.NOTSET)
                logger.handlers.clear()
                logger.propagate = True
                if logger_name.startswith("uvicorn"):  # for better DX
                    logger.addHandler(console_handler)
                    logger.propagate = False
            else:
                logger.disabled = True
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(level)
        root_logger.addHandler(console_handler)
        file_handler = cls.configure_file_logging(settings=settings, formatter=file_formatter, level=level)
        if file_handler is not None:
            root_logger.addHandler(file_handler)

    @classmethod
    def configure_structlog(cls) -> None:
        structlog.configure_once(
            processors=cls.get_structlog_processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    @classmethod
    def configure(cls, *, settings: Settings) -> None:
        cls.configure_stdlib(settings=settings)
        cls.configure_structlog()

    @staticmethod
    def timed_log_namer(default_name: str) -> str:
        base_filename, *ext, date = default_name.split(".")
        return f"{base_filename}{date}.{'.'.join(ext)}"  # i.e. "pricing12345678.log"

    @classmethod
    def configure_file_logging(
        cls, *, level: str, formatter: logging.Formatter, settings: Settings
    ) -> TimedRotatingFileHandler | None:
        if settings.LOG_FILE:
            handler = TimedRotatingFileHandler(settings.LOG_FILE, when="midnight")
            handler.suffix = "%Y%m%d"
            handler.extMatch = re.compile(r"^\d{8}(\.\w+)?$")
            handler.namer = cls.timed_log_namer
            handler.setFormatter(formatter)
            handler.setLevel(level)
            return handler
        return None


class Development(Logging[structlog.dev.ConsoleRenderer]):
    @classmethod
    def get_renderer(cls) -> structlog.dev.ConsoleRenderer:
        return structlog.dev.ConsoleRenderer(colors=True, exception_formatter=plain_traceback, pad_level=False)

    @classmethod
    def get_file_renderer(cls) -> structlog.dev.ConsoleRenderer:
        return structlog.dev.ConsoleRenderer(colors=False, exception_formatter=plain_traceback, pad_level=False)


class Production(Logging[structlog.processors.JSONRenderer]):
    @classmethod
    def get_renderer(cls) -> structlog.processors.JSONRenderer:
        return structlog.processors.JSONRenderer()

    @classmethod
    def get_file_renderer(cls) -> structlog.processors.JSONRenderer:
        return structlog.processors.JSONRenderer()


def configure(*, settings: Settings) -> None:
    if settings.is_production():
        Production.configure(settings=settings)
    else:
        Development.configure(settings=settings)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_exception_message(exc: BaseException) -> str:
    return "\n" + "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


@contextmanager
def log_errors(logger: Logger) -> Iterator[None]:
    try:
        yield
    except Exception as e:
        logger.error(get_exception_message(e))


def get_logger(name: str) -> Logger:
    logger: Logger = structlog.get_logger(name)
    return logger
