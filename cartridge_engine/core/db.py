from sqlalchemy import create_engine, Column, Integer, String, Boolean, JSON
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

DEFAULT_DB_URL = 'sqlite:///data/reference.db'


class SpeciesRow(Base):
    __tablename__ = 'species'

    id = Column(Integer, primary_key=True)  # National Dex number
    name = Column(String, nullable=False)

    # Base Stats
    base_hp = Column(Integer, nullable=False)
    base_attack = Column(Integer, nullable=False)
    base_defense = Column(Integer, nullable=False)
    base_sp_attack = Column(Integer, nullable=False)
    base_sp_defense = Column(Integer, nullable=False)
    base_speed = Column(Integer, nullable=False)

    # Types
    type1 = Column(String, nullable=False)
    type2 = Column(String, nullable=True)  # Null if mono-type

    # Metadata
    is_legendary = Column(Boolean, nullable=False, default=False)
    generation = Column(Integer, nullable=False, default=1)
    growth_rate = Column(String, nullable=False, default="medium-fast")


class RomConfigRow(Base):
    __tablename__ = 'rom_configs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_code = Column(String, nullable=False)
    game_name = Column(String, nullable=False)
    generation = Column(Integer, nullable=False)
    platform = Column(String, nullable=False)  # GB, GBC, GBA
    region = Column(String, nullable=False, default="USA")
    pokemon_count = Column(Integer, nullable=False, default=151)

    # Named byte offsets, e.g. {"wildGrassEncounters": 53392}
    offsets = Column(JSON, nullable=False, default=dict)
    structure_sizes = Column(JSON, nullable=False, default=dict)


def make_engine(url: str = DEFAULT_DB_URL):
    return create_engine(url)


def init_db(engine):
    Base.metadata.create_all(engine)


def make_session_factory(engine):
    return sessionmaker(bind=engine)
