from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .enums import Platform, TrainerGender, GrowthRate, Gen3Family


# =============================================================================
# Header / Configuration
# =============================================================================

@dataclass(frozen=True)
class GbHeader:
    title: str
    is_color: bool = False


@dataclass(frozen=True)
class GbaHeader:
    title: str
    game_code: str


def _parse_offset(value: Any) -> Any:
    """Offsets in JSON may be ints, "0x..." strings, or lists of either."""
    if isinstance(value, str):
        return int(value, 0)
    if isinstance(value, (list, tuple)):
        return tuple(_parse_offset(v) for v in value)
    return value


@dataclass(frozen=True)
class GameConfig:
    """
    Immutable descriptor of one known ROM release.

    ``offsets`` maps names such as ``wildGrassEncounters`` or
    ``starterOffsets`` to file offsets; ``structure_sizes`` maps record
    names to byte sizes. Both are exposed read-only.
    """
    game_code: str
    game_name: str
    generation: int
    platform: Platform
    region: str = "USA"
    pokemon_count: int = 151
    offsets: Mapping[str, Any] = field(default_factory=dict, hash=False)
    structure_sizes: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "platform", Platform(self.platform))
        object.__setattr__(
            self, "offsets",
            MappingProxyType({k: _parse_offset(v) for k, v in dict(self.offsets).items()}),
        )
        object.__setattr__(self, "structure_sizes", MappingProxyType(dict(self.structure_sizes)))

    def get_offset(self, name: str) -> Optional[Any]:
        """Returns a named offset, treating 0 and empty lists as absent."""
        value = self.offsets.get(name)
        return value or None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GameConfig:
        """Builds a config from a JSON/database row, accepting camelCase keys."""
        def pick(snake: str, camel: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        return cls(
            game_code=pick("game_code", "gameCode"),
            game_name=pick("game_name", "gameName"),
            generation=int(data["generation"]),
            platform=Platform(data["platform"]),
            region=data.get("region", "USA"),
            pokemon_count=int(pick("pokemon_count", "pokemonCount", 151)),
            offsets=data.get("offsets") or {},
            structure_sizes=pick("structure_sizes", "structureSizes", None) or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game_code": self.game_code,
            "game_name": self.game_name,
            "generation": self.generation,
            "platform": self.platform.value,
            "region": self.region,
            "pokemon_count": self.pokemon_count,
            "offsets": {k: list(v) if isinstance(v, tuple) else v for k, v in self.offsets.items()},
            "structure_sizes": dict(self.structure_sizes),
        }


@dataclass
class GameInfo:
    """Result of a successful ROM detection."""
    game_code: str
    game_name: str
    generation: int
    platform: Platform
    region: str
    pokemon_count: int
    offsets: Mapping[str, Any]
    structure_sizes: Mapping[str, int]
    file_size: int
    file_name: str = ""
    config: Optional[GameConfig] = field(default=None, repr=False)

    def get_offset(self, name: str) -> Optional[Any]:
        value = self.offsets.get(name)
        return value or None

    @classmethod
    def from_config(cls, game_config: GameConfig, file_size: int, file_name: str = "") -> GameInfo:
        return cls(
            game_code=game_config.game_code,
            game_name=game_config.game_name,
            generation=game_config.generation,
            platform=game_config.platform,
            region=game_config.region,
            pokemon_count=game_config.pokemon_count,
            offsets=game_config.offsets,
            structure_sizes=game_config.structure_sizes,
            file_size=file_size,
            file_name=file_name,
            config=game_config,
        )


# =============================================================================
# Species / Randomization
# =============================================================================

@dataclass(frozen=True)
class SpeciesRecord:
    national_id: int
    name: str
    types: Tuple[str, ...]
    hp: int
    attack: int
    defense: int
    sp_attack: int
    sp_defense: int
    speed: int
    is_legendary: bool = False
    generation: int = 1
    growth_rate: GrowthRate = GrowthRate.MEDIUM_FAST

    @property
    def bst(self) -> int:
        """Base Stat Total."""
        return self.hp + self.attack + self.defense + self.sp_attack + self.sp_defense + self.speed

    def shares_type_with(self, other: SpeciesRecord) -> bool:
        return any(t in other.types for t in self.types)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SpeciesRecord:
        types = data.get("types") or [t for t in (data.get("type1"), data.get("type2")) if t]
        return cls(
            national_id=int(data.get("national_id", data.get("id"))),
            name=data["name"],
            types=tuple(types),
            hp=int(data["hp"]),
            attack=int(data["attack"]),
            defense=int(data["defense"]),
            sp_attack=int(data["sp_attack"]),
            sp_defense=int(data["sp_defense"]),
            speed=int(data["speed"]),
            is_legendary=bool(data.get("is_legendary", False)),
            generation=int(data.get("generation", 1)),
            growth_rate=GrowthRate(data.get("growth_rate", GrowthRate.MEDIUM_FAST.value)),
        )


@dataclass(frozen=True)
class EncounterSlot:
    """
    One (level, species) encounter entry located in a ROM.

    ``address`` points at the species field. ``species_id`` is always the
    National number, already translated for Gen 1 buffers.
    """
    address: int
    level: int
    species_id: int
    width: int = 1


@dataclass
class RandomizationOptions:
    match_bst: bool = False
    bst_variance: int = 50
    include_legendaries: bool = False
    same_type: bool = False


@dataclass
class SpeciesChange:
    original_name: str
    new_name: str
    address: int = 0


@dataclass
class RandomizationResult:
    total_changes: int = 0
    changes: List[SpeciesChange] = field(default_factory=list)


# =============================================================================
# Save Files
# =============================================================================

@dataclass(frozen=True)
class GameTemplate:
    game_id: str
    name: str
    generation: int
    platform: Platform
    file_size: int
    game_code: str
    security_key: int = 0
    default_gender: TrainerGender = TrainerGender.MALE
    family: Optional[Gen3Family] = None
    version_id: int = 0  # Gen 3 "origin game" id used in met data


@dataclass
class NewSaveOptions:
    game_id: str
    trainer_name: str
    trainer_gender: Optional[TrainerGender] = None
    money: Optional[int] = None
    starter_species: Optional[int] = None
    trainer_id: Optional[int] = None
    secret_id: Optional[int] = None


@dataclass
class SynthesizedSave:
    """
    A freshly built save image.

    The same image backs both the download path (``to_bytes``) and the
    create-and-continue path (``editable``); neither mutates ``data``.
    """
    data: bytes
    template: GameTemplate
    trainer_name: str
    extension: str = ".sav"
    personality: Optional[int] = None

    def to_bytes(self) -> bytes:
        return bytes(self.data)

    def editable(self) -> bytearray:
        return bytearray(self.data)

    @property
    def download_name(self) -> str:
        return f"{self.trainer_name}_{self.template.game_id}{self.extension}"


@dataclass
class PlayTime:
    hours: int = 0
    minutes: int = 0
    seconds: int = 0


@dataclass
class SaveInfo:
    """Summary of a recognized save file."""
    generation: int
    game: str
    game_code: str
    platform: Platform
    file_size: int
    trainer_name: str
    trainer_id: int
    money: int
    badges: int = 0
    play_time: PlayTime = field(default_factory=PlayTime)
    checksum_valid: bool = True
    family: Optional[Gen3Family] = None


@dataclass
class PartyPokemon:
    """
    One party member read back from a save image.

    ``species_id`` is the National number for every generation. On Gen 3
    ``ot_id`` is the full 32-bit id with the secret id in the upper half.
    Gen 1/2 records carry no personality value, so ``personality`` is None
    there; ``checksum_valid`` only reflects the Gen 3 substructure checksum.
    """
    species_id: int
    nickname: str
    level: int
    ot_name: str
    ot_id: int
    experience: int = 0
    moves: Tuple[int, ...] = ()
    current_hp: int = 0
    max_hp: int = 0
    personality: Optional[int] = None
    ivs: Tuple[int, ...] = ()
    checksum_valid: bool = True

    @property
    def nature(self) -> Optional[int]:
        if self.personality is None:
            return None
        return self.personality % 25

    @property
    def is_shiny(self) -> bool:
        if self.personality is None:
            return False
        value = (self.ot_id >> 16) ^ (self.ot_id & 0xFFFF) \
            ^ (self.personality >> 16) ^ (self.personality & 0xFFFF)
        return value < 8
