"""
ROM Configuration Matching.

Maps a parsed header (plus the upload's file name) to one of the known
GameConfig entries. Real-world headers are inconsistently populated by
hobby tooling, so three increasingly fuzzy strategies run in strict
order and the first hit wins:

1. GBA game code, exact and case-insensitive.
2. GB/GBC title containment against the config's code and name.
3. File name words (at least 2 of the config's name words).

Nothing is scored or guessed; no match means None.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from .core.dataclasses import GameConfig, GameInfo, GbHeader, GbaHeader
from .core.enums import Platform
from .header import ParsedHeader, parse_header

logger = logging.getLogger(__name__)

MIN_FILENAME_WORD_HITS = 2


def match_by_game_code(header: Optional[ParsedHeader], configs: Iterable[GameConfig]) -> Optional[GameConfig]:
    """Returns the first GBA config whose game code equals the header's."""
    if not isinstance(header, GbaHeader) or not header.game_code:
        return None
    code = header.game_code.upper()
    for game_config in configs:
        if game_config.platform is Platform.GBA and game_config.game_code.upper() == code:
            return game_config
    return None


def match_by_title(header: Optional[ParsedHeader], configs: Iterable[GameConfig]) -> Optional[GameConfig]:
    """Returns the first GB/GBC config whose code or name contains (or is contained in) the title.

    The config's game code is compared with any "POKEMON " prefix removed, so
    "POKEMON RED" matches the header title "RED" and vice versa.
    """
    if not isinstance(header, GbHeader):
        return None
    title = header.title.upper()
    if not title:
        return None

    for game_config in configs:
        if not game_config.platform.is_game_boy:
            continue
        code = game_config.game_code.upper().replace("POKEMON ", "")
        if code and (code in title or title in code):
            return game_config
        if title in game_config.game_name.upper():
            return game_config
    return None


def match_by_filename(file_name: Optional[str], configs: Iterable[GameConfig]) -> Optional[GameConfig]:
    """Returns the first config with at least two display-name words in the file name."""
    if not file_name:
        return None
    upper_name = file_name.upper()
    for game_config in configs:
        words = game_config.game_name.upper().split()
        hits = sum(1 for word in words if word in upper_name)
        if hits >= MIN_FILENAME_WORD_HITS:
            return game_config
    return None


def match_config(
    header: Optional[ParsedHeader],
    file_name: Optional[str],
    configs: Sequence[GameConfig],
) -> Optional[GameConfig]:
    """Runs the three matching strategies in priority order.

    Args:
        header: Parsed header, or None if the image was unrecognized.
        file_name: Original upload file name (last-resort heuristic).
        configs: Known game configurations.

    Returns:
        Optional[GameConfig]: The matched config, or None.
    """
    for strategy, label in (
        (lambda: match_by_game_code(header, configs), "game code"),
        (lambda: match_by_title(header, configs), "title"),
        (lambda: match_by_filename(file_name, configs), "file name"),
    ):
        game_config = strategy()
        if game_config is not None:
            logger.debug(f"Matched {game_config.game_name} by {label}")
            return game_config
    return None


def detect_rom(data: bytes, configs: Sequence[GameConfig], file_name: str = "") -> Optional[GameInfo]:
    """Fingerprints a ROM image.

    Args:
        data (bytes): Raw ROM image.
        configs (Sequence[GameConfig]): Known game configurations.
        file_name (str): Original file name, used only as a fallback.

    Returns:
        Optional[GameInfo]: Descriptor of the detected game, or None for an
                            unsupported or corrupted file.
    """
    header = parse_header(data)
    game_config = match_config(header, file_name, configs)
    if game_config is None:
        logger.info(f"No configuration matched '{file_name}' ({len(data)} bytes)")
        return None
    logger.info(f"Detected {game_config.game_name} ({game_config.game_code}, Gen {game_config.generation})")
    return GameInfo.from_config(game_config, file_size=len(data), file_name=file_name)
