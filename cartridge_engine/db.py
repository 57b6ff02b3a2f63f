import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from .core.dataclasses import GameConfig, SpeciesRecord
from .core.db import SpeciesRow, RomConfigRow, DEFAULT_DB_URL, make_engine, init_db, make_session_factory
from .core.exceptions import ReferenceDataError

logger = logging.getLogger(__name__)


class ReferenceDatabase:
    """Handles interactions with the species / ROM configuration store.

    The engine itself only consumes plain lists of SpeciesRecord and
    GameConfig; this class is how those lists are loaded once at startup.

    Attributes:
        url (str): SQLAlchemy database URL.
        engine: Active SQLAlchemy engine or None.
    """

    def __init__(self, url: str = DEFAULT_DB_URL):
        """Initializes the database handler.

        Args:
            url (str): SQLAlchemy URL, e.g. ``sqlite:///data/reference.db``
                       or ``sqlite://`` for an in-memory store.
        """
        self.url = url
        self.engine = None
        self.Session = None

    def connect(self) -> None:
        """Creates the engine and makes sure the schema exists.

        Raises:
            ReferenceDataError: If the database cannot be opened.
        """
        try:
            self.engine = make_engine(self.url)
            init_db(self.engine)
            self.Session = make_session_factory(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Database connection error: {e}")
            raise ReferenceDataError(self.url, str(e)) from e

    def close(self) -> None:
        """Disposes of the engine if active."""
        if self.engine:
            self.engine.dispose()
            self.engine = None
            self.Session = None

    def __enter__(self) -> "ReferenceDatabase":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @staticmethod
    def _to_species(row: SpeciesRow) -> SpeciesRecord:
        return SpeciesRecord.from_dict({
            "national_id": row.id,
            "name": row.name,
            "type1": row.type1,
            "type2": row.type2,
            "hp": row.base_hp,
            "attack": row.base_attack,
            "defense": row.base_defense,
            "sp_attack": row.base_sp_attack,
            "sp_defense": row.base_sp_defense,
            "speed": row.base_speed,
            "is_legendary": row.is_legendary,
            "generation": row.generation,
            "growth_rate": row.growth_rate,
        })

    @staticmethod
    def _to_config(row: RomConfigRow) -> GameConfig:
        return GameConfig.from_dict({
            "game_code": row.game_code,
            "game_name": row.game_name,
            "generation": row.generation,
            "platform": row.platform,
            "region": row.region,
            "pokemon_count": row.pokemon_count,
            "offsets": row.offsets or {},
            "structure_sizes": row.structure_sizes or {},
        })

    def list_species(self) -> List[SpeciesRecord]:
        """Returns every species ordered by National Dex number."""
        if not self.Session: return []
        with self.Session() as session:
            rows = session.query(SpeciesRow).order_by(SpeciesRow.id).all()
            return [self._to_species(row) for row in rows]

    def get_species(self, national_id: int) -> Optional[SpeciesRecord]:
        """Retrieves one species.

        Args:
            national_id (int): National Dex number.

        Returns:
            Optional[SpeciesRecord]: The record, or None if not found.
        """
        if not self.Session: return None
        with self.Session() as session:
            row = session.get(SpeciesRow, national_id)
            if not row: return None
            return self._to_species(row)

    def list_game_configs(self) -> List[GameConfig]:
        """Returns every known ROM configuration in insertion order."""
        if not self.Session: return []
        with self.Session() as session:
            rows = session.query(RomConfigRow).order_by(RomConfigRow.id).all()
            return [self._to_config(row) for row in rows]

    def add_species(self, records: List[SpeciesRecord]) -> int:
        """Inserts or replaces species rows.

        Returns:
            int: Number of rows written.
        """
        with self.Session() as session:
            for record in records:
                session.merge(SpeciesRow(
                    id=record.national_id,
                    name=record.name,
                    base_hp=record.hp,
                    base_attack=record.attack,
                    base_defense=record.defense,
                    base_sp_attack=record.sp_attack,
                    base_sp_defense=record.sp_defense,
                    base_speed=record.speed,
                    type1=record.types[0],
                    type2=record.types[1] if len(record.types) > 1 else None,
                    is_legendary=record.is_legendary,
                    generation=record.generation,
                    growth_rate=record.growth_rate.value,
                ))
            session.commit()
        return len(records)

    def add_game_configs(self, configs: List[GameConfig]) -> int:
        """Appends ROM configuration rows.

        Returns:
            int: Number of rows written.
        """
        with self.Session() as session:
            for game_config in configs:
                data = game_config.to_dict()
                session.add(RomConfigRow(**data))
            session.commit()
        return len(configs)


def _read_json(path: Union[str, Path]):
    path = Path(path)
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read {path}: {e}")
        raise ReferenceDataError(str(path), str(e)) from e


def load_species_json(path: Union[str, Path]) -> List[SpeciesRecord]:
    """Loads a JSON list of species objects (see SpeciesRecord.from_dict)."""
    return [SpeciesRecord.from_dict(item) for item in _read_json(path)]


def load_configs_json(path: Union[str, Path]) -> List[GameConfig]:
    """Loads a JSON list of ROM configuration objects (see GameConfig.from_dict)."""
    return [GameConfig.from_dict(item) for item in _read_json(path)]
