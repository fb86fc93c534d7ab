from vendorbuild.errors import (
    ArchiveError,
    BindingError,
    BuilderError,
    ErrorCode,
    FilesystemError,
    IntegrityError,
    PolicyError,
    ProvisionError,
    TransportError,
    ValidationError,
)


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ValidationError("bad input"),
        IntegrityError("digest mismatch"),
        TransportError("connection reset"),
        ArchiveError("truncated"),
        FilesystemError("disk full"),
        BuilderError("cmake failed"),
        BindingError("bindgen failed"),
        PolicyError("offline"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.VALIDATION.value,
        ErrorCode.INTEGRITY.value,
        ErrorCode.TRANSPORT.value,
        ErrorCode.ARCHIVE.value,
        ErrorCode.FILESYSTEM.value,
        ErrorCode.BUILDER.value,
        ErrorCode.BINDING.value,
        ErrorCode.POLICY.value,
    ]
    assert all(isinstance(error, ProvisionError) for error in errors)


def test_error_renders_hint_and_context() -> None:
    error = IntegrityError(
        "archive has invalid digest.",
        hint="verify upstream",
        context={"stage": "fetch", "expected": "aa", "actual": ""},
    )

    rendered = str(error)
    assert rendered.splitlines()[0] == "archive has invalid digest."
    assert "Hint: verify upstream" in rendered
    assert "  expected: aa" in rendered
    assert "actual" not in rendered
    assert error.stage == "fetch"


def test_error_to_dict() -> None:
    payload = BuilderError("boom", context={"stage": "build"}).to_dict()
    assert payload["code"] == "E_BUILDER"
    assert payload["context"] == {"stage": "build"}
    assert "hint" not in payload
