"""Content Rules: excerpt, category, filename and timestamp derivations.

Tests cover:
    - Excerpt truncation boundary (150 chars + "...")
    - Category defaulting and length limit
    - Storage key layout and filename sanitizing
    - Image, password and display-name checks raise the right error types
    - normalize_timestamp accepts exactly one family of encodings
"""

from datetime import datetime, timedelta, timezone

import pytest

from quill.core.content_rules import (
    author_display_name,
    build_storage_key,
    check_display_name,
    check_image,
    check_password_strength,
    make_excerpt,
    normalize_category,
    normalize_timestamp,
    sanitize_filename,
)
from quill.core.domain_types import UserId
from quill.core.entities import Identity, ImageFile
from quill.core.errors import InputValidationError, UploadFailure, WeakPasswordError

MB = 1024 * 1024


# -- excerpt -------------------------------------------------------------------

def test_excerpt_truncates_200_chars_to_150_plus_ellipsis():
    content = "a" * 150 + "b" * 50
    excerpt = make_excerpt(content)
    assert excerpt == "a" * 150 + "..."
    assert len(excerpt) == 153


def test_excerpt_keeps_short_content_unmodified():
    content = "x" * 100
    assert make_excerpt(content) == content


def test_excerpt_at_exact_limit_has_no_ellipsis():
    content = "y" * 150
    assert make_excerpt(content) == content


# -- category ------------------------------------------------------------------

@pytest.mark.parametrize("value", [None, "", "   "])
def test_blank_category_defaults_to_general(value):
    assert normalize_category(value) == "General"


def test_category_is_stripped():
    assert normalize_category("  Travel ") == "Travel"


def test_overlong_category_rejected():
    with pytest.raises(InputValidationError) as exc:
        normalize_category("c" * 51)
    assert exc.value.field == "category"


# -- author snapshot -----------------------------------------------------------

def test_author_name_falls_back_to_anonymous():
    assert author_display_name(Identity(UserId("u1"), "a@b.c")) == "Anonymous"
    assert author_display_name(Identity(UserId("u1"), "a@b.c", "  ")) == "Anonymous"
    assert author_display_name(Identity(UserId("u1"), "a@b.c", "Ada")) == "Ada"


# -- storage keys --------------------------------------------------------------

def test_sanitize_replaces_everything_but_alnum_dot_dash():
    assert sanitize_filename("my photo (1).JPG") == "my_photo__1_.JPG"
    assert sanitize_filename("été-2024.png") == "_t_-2024.png"


def test_storage_key_layout():
    key = build_storage_key("uid-7", 1700000000123, "cat pic.png")
    assert key == "blog-images/uid-7/1700000000123_cat_pic.png"


# -- image checks --------------------------------------------------------------

def test_image_over_limit_fails_with_size_reason():
    image = ImageFile("big.png", "image/png", b"\0" * (6 * MB))
    with pytest.raises(UploadFailure) as exc:
        check_image(image, 5 * MB)
    assert exc.value.reason == "file_too_large"
    assert exc.value.recoverable


def test_non_image_type_rejected():
    with pytest.raises(UploadFailure) as exc:
        check_image(ImageFile("notes.pdf", "application/pdf", b"%PDF"), 5 * MB)
    assert exc.value.reason == "unsupported_type"


def test_image_type_outside_allow_list_rejected():
    image = ImageFile("vector.svg", "image/svg+xml", b"<svg/>")
    with pytest.raises(UploadFailure):
        check_image(image, 5 * MB, ["image/png", "image/jpeg"])


def test_empty_image_rejected():
    with pytest.raises(UploadFailure) as exc:
        check_image(ImageFile("empty.png", "image/png", b""), 5 * MB)
    assert exc.value.reason == "empty_file"


def test_image_exactly_at_limit_passes():
    check_image(ImageFile("ok.png", "image/png", b"\0" * (5 * MB)), 5 * MB)


# -- identity checks -----------------------------------------------------------

def test_short_password_is_weak():
    with pytest.raises(WeakPasswordError):
        check_password_strength("12345")
    check_password_strength("123456")


@pytest.mark.parametrize("name", ["", "   "])
def test_empty_display_name_rejected(name):
    with pytest.raises(InputValidationError):
        check_display_name(name, "Alice")


def test_unchanged_display_name_rejected():
    with pytest.raises(InputValidationError, match="No changes"):
        check_display_name(" Alice ", "Alice")


def test_display_name_is_stripped():
    assert check_display_name("  Ali ", "Alice") == "Ali"


# -- timestamps ----------------------------------------------------------------

def test_naive_timestamp_read_as_utc():
    ts = normalize_timestamp(datetime(2026, 1, 2, 3, 4, 5))
    assert ts == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_aware_timestamp_converted_to_utc():
    plus_two = timezone(timedelta(hours=2))
    ts = normalize_timestamp(datetime(2026, 1, 2, 5, 0, tzinfo=plus_two))
    assert ts == datetime(2026, 1, 2, 3, 0, tzinfo=timezone.utc)
    assert ts.tzinfo == timezone.utc


def test_iso_string_timestamp_accepted():
    ts = normalize_timestamp("2026-01-02T03:04:05+00:00")
    assert ts == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [1700000000, None, "yesterday"])
def test_other_timestamp_encodings_rejected(value):
    with pytest.raises(InputValidationError):
        normalize_timestamp(value, "created_at")
