from concurrent.futures import Executor, Future
from datetime import datetime, timezone

import pytest

from prepare_data import build_case_catalog


class InlineExecutor(Executor):
    """Runs each job on submit, so delivery outcomes are settled immediately."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args, **kwargs):
        self.submitted.append(args)
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


CASES = [
    {
        "id": "baseline_pna",
        "caseText": "65-year-old woman with fever and productive cough.",
        "aiText": "Right lower-lobe pneumonia detected.",
        "aiConfidence": 94,
        "imageUrl": "https://example.org/pna.jpeg",
        "imageAlt": "Right lower-lobe consolidation",
    },
    {
        "id": "conflict_ptx",
        "caseText": "54-year-old man with pleuritic chest pain.",
        "aiText": "Small right apical pneumothorax detected.",
        "aiConfidence": 82,
    },
    {
        "id": "overconf_normfail",
        "caseText": "70-year-old man with progressive dyspnea and orthopnea.",
        "aiText": "No acute cardiopulmonary abnormality. Normal study.",
        "aiConfidence": 99,
    },
]


@pytest.fixture
def case_entries():
    return [dict(c) for c in CASES]


@pytest.fixture
def catalog(case_entries):
    return build_case_catalog(case_entries)


@pytest.fixture
def inline_executor():
    return InlineExecutor()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)
