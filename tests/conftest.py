"""Shared fixtures for the textframe test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from textframe import TextFile, TextFileMode

# ---------------------------------------------------------------------------
# Sample text content
# ---------------------------------------------------------------------------

# All single-byte characters, 914 characters / bytes.
EXAMPLE_ASCII_TEXT = """
Article 1

All human beings are born free and equal in dignity and rights. They are endowed with reason and conscience and should act towards one another in a spirit of brotherhood.

Article 2

Everyone is entitled to all the rights and freedoms set forth in this Declaration, without distinction of any kind, such as race, colour, sex, language, religion, political or other opinion, national or social origin, property, birth or other status. Furthermore, no distinction shall be made on the basis of the political, jurisdictional or international status of the country or territory to which a person belongs, whether it be independent, trust, non-self-governing or under any other limitation of sovereignty.

Article 3

Everyone has the right to life, liberty and security of person.

Article 4

No one shall be held in slavery or servitude; slavery and the slave trade shall be prohibited in all their forms.
"""

# Multi-byte characters mixed with single-byte ones, 271 characters / 771 bytes.
EXAMPLE_UNICODE_TEXT = """
第一条

人人生而自由,在尊严和权利上一律平等。他们赋有理性和良心,并应以兄弟关系的精神相对待。
第二条

人人有资格享有本宣言所载的一切权利和自由,不分种族、肤色、性别、语言、宗教、政治或其他见解、国籍或社会出身、财产、出生或其他身分等任何区别。

并且不得因一人所属的国家或领土的政治的、行政的或者国际的地位之不同而有所区别,无论该领土是独立领土、托管领土、非自治领土或者处于其他任何主权受限制的情况之下。
第三条

人人有权享有生命、自由和人身安全。
第四条

任何人不得使为奴隶或奴役;一切形式的奴隶制度和奴隶买卖,均应予以禁止。
"""

EXAMPLE_CYRILLIC_TEXT = "ПРИВЕТ"

EXAMPLE_LINES_TEXT = "a\nb\nc\n"

# SHA-256 of EXAMPLE_ASCII_TEXT
EXAMPLE_ASCII_SHA256 = "c6b079e561f19702d63111a3201d4850e9649b8a3ef1929d6530a780f3815215"

# Mixed widths (1, 2, 3 and 4 bytes) long enough to span many checkpoints.
MIXED_TEXT = "".join(f"línea {i}: 日本語 🙂 ok\n" for i in range(200))


def write_text(tmp_path: Path, text: str, name: str = "sample.txt") -> Path:
    """Write *text* as UTF-8 and return the path."""
    path = tmp_path / name
    path.write_bytes(text.encode("utf-8"))
    return path


# ---------------------------------------------------------------------------
# Temp file fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ascii_file(tmp_path: Path) -> Path:
    return write_text(tmp_path, EXAMPLE_ASCII_TEXT, "ascii.txt")


@pytest.fixture()
def unicode_file(tmp_path: Path) -> Path:
    return write_text(tmp_path, EXAMPLE_UNICODE_TEXT, "unicode.txt")


@pytest.fixture()
def cyrillic_file(tmp_path: Path) -> Path:
    return write_text(tmp_path, EXAMPLE_CYRILLIC_TEXT, "cyrillic.txt")


@pytest.fixture()
def lines_file(tmp_path: Path) -> Path:
    return write_text(tmp_path, EXAMPLE_LINES_TEXT, "lines.txt")


@pytest.fixture()
def mixed_file(tmp_path: Path) -> Path:
    return write_text(tmp_path, MIXED_TEXT, "mixed.txt")


@pytest.fixture()
def empty_file(tmp_path: Path) -> Path:
    path = tmp_path / "empty.txt"
    path.write_bytes(b"")
    return path


# ---------------------------------------------------------------------------
# TextFile fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ascii_textfile(ascii_file: Path) -> TextFile:
    return TextFile(ascii_file)


@pytest.fixture()
def unicode_textfile(unicode_file: Path) -> TextFile:
    return TextFile(unicode_file)


@pytest.fixture()
def mixed_textfile(mixed_file: Path) -> TextFile:
    """TextFile over MIXED_TEXT with a small checkpoint interval."""
    return TextFile(mixed_file, checkpoint_interval=16)


@pytest.fixture()
def no_lines_textfile(ascii_file: Path) -> TextFile:
    return TextFile(ascii_file, mode=TextFileMode.NO_LINE_INDEX)
