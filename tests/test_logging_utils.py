import logging

import numpy as np
import pytest

from sketchcore.logging_utils import _safe_repr, apply_debug_logging, debug_log_call


def test_safe_repr_summarizes_large_arrays():
    rendered = _safe_repr(np.arange(100.0))
    assert "shape=(100,)" in rendered
    assert "min=0" in rendered
    assert "max=99" in rendered
    assert _safe_repr([1, 2, 3, 4, 5, 6, 7]) == "[1, 2, 3, 4, 5, ...]"


def test_debug_log_call_emits_records_only_at_debug(caplog):
    logger = logging.getLogger("sketchcore.tests.trace")

    @debug_log_call(logger)
    def add(a, b):
        return a + b

    with caplog.at_level(logging.INFO, logger=logger.name):
        assert add(1, 2) == 3
    assert caplog.records == []

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        assert add(1, b=2) == 3
    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("Entering") and "kwargs={b=2}" in message for message in messages)
    assert any(message.startswith("Exiting") and "-> 3" in message for message in messages)


def test_apply_debug_logging_wraps_module_functions():
    def helper():
        return "ok"

    helper.__module__ = "fake_module"
    namespace = {"__name__": "fake_module", "helper": helper, "skipped": helper}
    apply_debug_logging(namespace, skip={"skipped"})
    assert getattr(namespace["helper"], "_debug_logging_wrapped", False)
    assert namespace["skipped"] is helper
    assert namespace["helper"]() == "ok"


def test_traced_exceptions_are_logged_and_reraised(caplog):
    logger = logging.getLogger("sketchcore.tests.trace")

    @debug_log_call(logger, name="explode")
    def explode():
        raise ValueError("boom")

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        with pytest.raises(ValueError):
            explode()
    assert any(record.getMessage() == "Exception in explode" for record in caplog.records)


def test_apply_debug_logging_leaves_classes_alone():
    class Holder:
        def method(self):
            return 1

    Holder.__module__ = "fake_module"
    original = Holder.__dict__["method"]
    namespace = {"__name__": "fake_module", "Holder": Holder}
    apply_debug_logging(namespace)
    assert namespace["Holder"] is Holder
    assert Holder.__dict__["method"] is original
