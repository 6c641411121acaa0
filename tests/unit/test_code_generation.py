import pytest

from authkeeper.domain.errors import MalformedResetHandle
from authkeeper.domain.services import (
    CODE_ALPHABET,
    RESET_CODE_LENGTH,
    build_reset_handle,
    generate_code,
    split_reset_handle,
    token_fingerprint,
)


def test_generate_code_length_and_alphabet():
    for length in (1, 6, 12):
        c = generate_code(length)
        assert len(c) == length
        assert set(c) <= set(CODE_ALPHABET), c


def test_generate_code_is_not_constant():
    assert len({generate_code(6) for _ in range(50)}) > 1


@pytest.mark.parametrize("length", [0, -1])
def test_generate_code_rejects_non_positive_length(length):
    with pytest.raises(ValueError):
        generate_code(length)


def test_reset_handle_splits_back_into_token_and_code():
    handle = build_reset_handle("header.payload.signature", "Xy7Qa1")
    assert handle == "header.payload.signatureXy7Qa1"
    assert split_reset_handle(handle) == ("header.payload.signature", "Xy7Qa1")


def test_reset_handle_ignores_surrounding_whitespace():
    assert split_reset_handle("  tok.en.sigAAAAAA \n") == ("tok.en.sig", "AAAAAA")


@pytest.mark.parametrize("handle", ["", "   ", "A" * RESET_CODE_LENGTH, None])
def test_short_reset_handle_is_malformed(handle):
    with pytest.raises(MalformedResetHandle):
        split_reset_handle(handle)


def test_build_reset_handle_requires_fixed_code_length():
    with pytest.raises(ValueError):
        build_reset_handle("tok", "12345")


def test_token_fingerprint_is_stable_and_opaque():
    fp = token_fingerprint("some.jwt.value")
    assert fp == token_fingerprint("some.jwt.value")
    assert fp != token_fingerprint("some.jwt.valuf")
    assert len(fp) == 64 and "jwt" not in fp
