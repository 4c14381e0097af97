"""Unit tests for logging helpers."""

import logging

import pytest


@pytest.fixture
def restore_root_logging(monkeypatch):
    """Snapshot root handlers so configure_logging can be exercised safely."""
    import vidmark.core.logging_config as logging_config

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(logging_config, "_configured", False)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


class TestModuleLogger:

    def test_namespaced_name_and_component(self):
        from vidmark.core.logging_utils import get_module_logger

        log = get_module_logger("media.sink")
        assert log.name == "vidmark.media.sink"
        assert log.component == "media.sink"

    def test_already_namespaced(self):
        from vidmark.core.logging_utils import get_module_logger

        log = get_module_logger("vidmark.pipeline")
        assert log.name == "vidmark.pipeline"
        assert log.component == "pipeline"

    def test_default_name(self):
        from vidmark.core.logging_utils import get_module_logger

        assert get_module_logger().name == "vidmark"

    def test_messages_carry_component_tag(self, caplog):
        from vidmark.core.logging_utils import get_module_logger

        log = get_module_logger("schedule")
        with caplog.at_level(logging.INFO, logger="vidmark"):
            log.info("slot %s", "A")
        assert "[schedule] slot A" in caplog.text

    def test_bad_format_args_do_not_raise(self, caplog):
        from vidmark.core.logging_utils import get_module_logger

        log = get_module_logger("compositor")
        with caplog.at_level(logging.WARNING, logger="vidmark"):
            log.warning("%d frames", "many")
        assert "args=many" in caplog.text

    def test_child_component(self):
        from vidmark.core.logging_utils import get_module_logger

        child = get_module_logger("media").getChild("sink")
        assert child.component == "media.sink"
        assert child.name == "vidmark.media.sink"


class TestEnsureStructuredLogger:

    def test_passthrough(self):
        from vidmark.core.logging_utils import ensure_structured_logger, get_module_logger

        log = get_module_logger("x")
        assert ensure_structured_logger(log) is log

    def test_wraps_plain_logger(self):
        from vidmark.core.logging_utils import StructuredLogger, ensure_structured_logger

        wrapped = ensure_structured_logger(logging.getLogger("thirdparty"), component="tp")
        assert isinstance(wrapped, StructuredLogger)
        assert wrapped.component == "tp"
        assert wrapped.logger is logging.getLogger("thirdparty")

    def test_fallback_name(self):
        from vidmark.core.logging_utils import ensure_structured_logger

        assert ensure_structured_logger(None, fallback_name="pipeline").name == "vidmark.pipeline"


class TestConfigureLogging:

    def test_file_handler_and_level(self, restore_root_logging, tmp_path):
        from logging.handlers import RotatingFileHandler

        from vidmark.core.logging_config import configure_logging

        log_file = tmp_path / "logs" / "vidmark.log"
        configure_logging("debug", log_file=log_file)

        root = restore_root_logging
        assert root.level == logging.DEBUG
        assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
        assert log_file.parent.is_dir()
        assert logging.getLogger("libav").level == logging.ERROR

    def test_unknown_level(self, restore_root_logging):
        from vidmark.core.logging_config import configure_logging

        with pytest.raises(ValueError):
            configure_logging("loud")

    def test_console_goes_to_stderr(self, restore_root_logging):
        import sys

        from vidmark.core.logging_config import configure_logging

        configure_logging("info")
        streams = [getattr(h, "stream", None) for h in restore_root_logging.handlers]
        assert sys.stderr in streams

    def test_second_call_only_changes_level(self, restore_root_logging):
        from vidmark.core.logging_config import configure_logging

        root = restore_root_logging
        configure_logging("info")
        handlers = list(root.handlers)

        configure_logging("warning")

        assert root.handlers == handlers
        assert root.level == logging.WARNING
