"""Message-ID normalization and filesystem-safe naming helpers."""

import re
from pathlib import Path

UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')
MAX_RENAME_ATTEMPTS = 10000


def normalize_message_id(message_id: str) -> str:
    """
    Normalize Message-ID to standard format with angle brackets.

    Args:
        message_id: Raw Message-ID (may or may not have brackets)

    Returns:
        Message-ID in format <id@domain>

    Raises:
        ValueError: If message_id is empty or has no '@'

    Examples:
        >>> normalize_message_id("abc@domain.com")
        '<abc@domain.com>'
        >>> normalize_message_id(" <abc@domain.com> ")
        '<abc@domain.com>'
    """
    if not message_id or not message_id.strip():
        raise ValueError("Message-ID is empty")

    clean_id = message_id.strip().removeprefix("<").removesuffix(">")

    if "@" not in clean_id:
        raise ValueError(f"Invalid Message-ID format: {message_id}")

    return f"<{clean_id}>"


def sanitize_filename(name: str) -> str:
    """
    Replace characters that are unsafe in filenames with underscores.

    Examples:
        >>> sanitize_filename('re: report?.pdf')
        're_ report_.pdf'
        >>> sanitize_filename('  ')
        'attachment.bin'
    """
    return UNSAFE_FILENAME_CHARS.sub("_", name).strip() or "attachment.bin"


def extension_for_content_type(content_type: str) -> str:
    """
    Guess a file extension from a MIME type's subtype.

    Examples:
        >>> extension_for_content_type("image/png; name=x")
        '.png'
        >>> extension_for_content_type("")
        '.bin'
    """
    main = content_type.split(";")[0].strip()
    _, _, subtype = main.partition("/")
    return f".{subtype}" if subtype else ".bin"


def unique_path(directory: Path, filename: str) -> Path:
    """
    Find a free path for filename in directory, appending ' (n)' to the stem.

    Raises:
        FileExistsError: If no free name is found after MAX_RENAME_ATTEMPTS
    """
    candidate = directory / filename
    if not candidate.exists():
        return candidate

    stem = candidate.stem
    suffix = candidate.suffix

    for counter in range(1, MAX_RENAME_ATTEMPTS + 1):
        candidate = directory / f"{stem} ({counter}){suffix}"
        if not candidate.exists():
            return candidate

    raise FileExistsError(
        f'Unable to find unique path for "{filename}" after {MAX_RENAME_ATTEMPTS} attempts'
    )
