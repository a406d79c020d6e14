"""Error hierarchy, context fields, pickling and package exports."""

from __future__ import annotations

import pickle

import pytest

import notehistory
from notehistory import __all__ as PKG_ALL
from notehistory.errors import (
    ErrorCode,
    NoteHistoryError,
    NoteHistoryExtractionError,
    NoteHistoryHTTPError,
    NoteHistoryMalformedInputError,
    NoteHistoryNetworkError,
    NoteHistoryNotFoundError,
    NoteHistoryStorageError,
)

ALL_ERRORS = {
    ErrorCode.NOT_FOUND: NoteHistoryNotFoundError,
    ErrorCode.MALFORMED_INPUT: NoteHistoryMalformedInputError,
    ErrorCode.STORAGE_ERROR: NoteHistoryStorageError,
    ErrorCode.EXTRACTION_ERROR: NoteHistoryExtractionError,
    ErrorCode.NETWORK_ERROR: NoteHistoryNetworkError,
    ErrorCode.HTTP_ERROR: NoteHistoryHTTPError,
}


class TestHierarchy:
    def test_every_code_has_a_subclass(self):
        assert set(ALL_ERRORS) == set(ErrorCode)

    @pytest.mark.parametrize("code, cls", list(ALL_ERRORS.items()))
    def test_subclass_sets_code(self, code, cls):
        err = cls(message="boom", context={"k": "v"})
        assert isinstance(err, NoteHistoryError)
        assert err.code == code
        assert err.code == code.value
        assert str(err) == "boom"

    def test_context_defaults_to_empty(self):
        assert NoteHistoryNotFoundError(message="x").context == {}

    def test_cause_is_chained(self):
        cause = OSError("disk")
        err = NoteHistoryStorageError(message="write failed", cause=cause)
        assert err.cause is cause
        assert err.__cause__ is cause

    def test_repr(self):
        err = NoteHistoryNotFoundError(message="gone", context={"version_id": "v_1"})
        assert repr(err) == (
            "NoteHistoryNotFoundError(code=<ErrorCode.NOT_FOUND: 'NOT_FOUND'>, "
            "message='gone', context={'version_id': 'v_1'})"
        )


class TestPickling:
    @pytest.mark.parametrize("cls", list(ALL_ERRORS.values()))
    def test_round_trip(self, cls):
        err = cls(message="boom", context={"document_id": "doc"})
        clone = pickle.loads(pickle.dumps(err))
        assert type(clone) is cls
        assert (clone.code, clone.message, clone.context) == (err.code, err.message, err.context)


class TestExports:
    def test_all_names_resolve(self):
        for name in PKG_ALL:
            assert hasattr(notehistory, name), name

    def test_no_duplicates(self):
        assert len(PKG_ALL) == len(set(PKG_ALL))
