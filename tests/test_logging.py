import logging
import sys

import pytest

from rust_inline.logging import configure_logging, get_logger


def test_get_logger_names():
    assert get_logger().name == "rust_inline"
    assert get_logger("compile").name == "rust_inline.compile"
    assert get_logger("rust_inline.compile.builder").name == "rust_inline.compile.builder"


def test_configure_logging_is_idempotent():
    logger = get_logger()
    level, handlers = logger.level, list(logger.handlers)
    try:
        configure_logging("debug")
        configure_logging(logging.INFO)
        ours = [h for h in logger.handlers if getattr(h, "_rust_inline", False)]
        assert len(ours) == 1
        assert logger.level == logging.INFO
    finally:
        logger.handlers = handlers
        logger.setLevel(level)


if __name__ == "__main__":
    pytest.main(sys.argv)
