"""
Custom Exception Hierarchy for the Cartridge Engine.

Provides structured error handling with specific exception types
for the failure modes of ROM editing and save synthesis.

Unrecognized input (an unknown header, an unmatched configuration) is
reported as ``None`` by the detection functions and never raised. The
exceptions below cover structural precondition failures, which abort the
current operation before the caller's buffer is touched.

Usage:
    from cartridge_engine.core.exceptions import MissingOffsetError

    try:
        randomize_wild_encounters(rom, game_config, species, options)
    except MissingOffsetError as e:
        logger.error(f"Cannot randomize: {e}")
"""

from __future__ import annotations

from typing import Optional


class CartridgeEngineError(Exception):
    """
    Base exception for all Cartridge Engine errors.

    All custom exceptions inherit from this, allowing callers to catch
    every engine failure with a single except clause.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# ROM Errors
# =============================================================================

class RomError(CartridgeEngineError):
    """Base class for ROM-related errors."""
    pass


class UnrecognizedRomError(RomError):
    """
    Raised when a caller insists on a match that could not be made.

    The detection API itself returns None; this is for callers (such as
    the CLI) that need to turn "no match" into a hard failure.
    """

    def __init__(self, file_name: Optional[str] = None, size: Optional[int] = None):
        details = {}
        if file_name:
            details["file_name"] = file_name
        if size is not None:
            details["size"] = size
        super().__init__("Unsupported or corrupted ROM image", details)
        self.file_name = file_name
        self.size = size


class MissingOffsetError(RomError):
    """
    Raised when the matched configuration lacks an offset an operation needs.

    Distinguishes "unsupported game" from "bad input": the ROM was recognized
    but its configuration does not describe the table being edited.
    """

    def __init__(self, offset_name: str, game_code: Optional[str] = None):
        details = {"offset": offset_name}
        if game_code:
            details["game_code"] = game_code
        super().__init__(f"Offset '{offset_name}' not configured for this ROM", details)
        self.offset_name = offset_name
        self.game_code = game_code


class EncounterTableNotFoundError(RomError):
    """Raised when the GBA map-header table cannot be located near its hint."""

    def __init__(self, game_name: str, hint: int):
        super().__init__(
            f"Could not locate wild encounter table for {game_name}",
            {"hint": hex(hint)},
        )
        self.game_name = game_name
        self.hint = hint


# =============================================================================
# Species Errors
# =============================================================================

class SpeciesError(CartridgeEngineError):
    """Base class for species-related errors."""
    pass


class UnsupportedSpeciesError(SpeciesError):
    """
    Raised when a species id falls outside a translation table's domain.

    Common causes:
    - Gen 1 internal byte that maps to a glitch/MissingNo. slot
    - National id above 151 written into a Gen 1 buffer
    """

    def __init__(self, value: int, domain: str):
        super().__init__(
            f"Species id {value} is outside the {domain} domain",
            {"value": value, "domain": domain},
        )
        self.value = value
        self.domain = domain


class EmptySpeciesPoolError(SpeciesError):
    """Raised when filtering leaves no species to randomize into."""

    def __init__(self, generation: int, include_legendaries: bool):
        super().__init__(
            "No Pokemon available in pool",
            {"generation": generation, "include_legendaries": include_legendaries},
        )
        self.generation = generation
        self.include_legendaries = include_legendaries


# =============================================================================
# Save Errors
# =============================================================================

class SaveError(CartridgeEngineError):
    """Base class for save synthesis errors."""
    pass


class UnknownGameTemplateError(SaveError):
    """Raised when a save is requested for a game id with no template."""

    def __init__(self, game_id: str):
        super().__init__(f"Unknown game template: {game_id}", {"game_id": game_id})
        self.game_id = game_id


class InvalidSaveOptionsError(SaveError):
    """Raised when new-save options cannot produce a valid image."""

    def __init__(self, field_name: str, reason: str):
        super().__init__(f"Invalid value for '{field_name}': {reason}", {"field": field_name})
        self.field_name = field_name
        self.reason = reason


class UnrecognizedSaveError(SaveError):
    """
    Raised when a save image cannot be edited because no generation's
    layout matches it.

    Common causes:
    - The file is not a Gen 1/2/3 save (wrong size, no section signatures)
    - The trainer name field is blank or unterminated
    """

    def __init__(self, size: int):
        super().__init__("Save file format not recognized", {"size": size})
        self.size = size


# =============================================================================
# Decryption Errors
# =============================================================================

class DecryptionError(CartridgeEngineError):
    """
    Raised when a Gen 3 Pokemon record fails to decrypt.

    This can occur when:
    - The substructure block is not 48 bytes
    - The stored checksum does not match the decrypted data
    """

    def __init__(
        self,
        message: str = "Failed to decrypt Pokemon data",
        personality: Optional[int] = None,
        expected_checksum: Optional[int] = None,
        actual_checksum: Optional[int] = None,
    ):
        details = {}
        if personality is not None:
            details["personality"] = f"0x{personality:08X}"
        if expected_checksum is not None:
            details["expected"] = f"0x{expected_checksum:04X}"
        if actual_checksum is not None:
            details["actual"] = f"0x{actual_checksum:04X}"
        super().__init__(message, details)
        self.personality = personality


# =============================================================================
# Data Errors
# =============================================================================

class DataError(CartridgeEngineError):
    """Base class for reference data errors."""
    pass


class ReferenceDataError(DataError):
    """Raised when the species/config reference tables cannot be loaded."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Failed to load reference data from {source}", {"reason": reason})
        self.source = source
        self.reason = reason
