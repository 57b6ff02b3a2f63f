import argparse
import logging
import os
import sys

"""
Data Ingestion Script for the Cartridge Engine Reference Database.

This script loads the species table and the known ROM configurations from
JSON files and writes them into the SQLAlchemy reference database used by
the CLI (``--db``).

It handles:
1. Database schema creation.
2. Species rows (National Dex number, name, types, base stats, legendary
   flag, generation, growth rate).
3. ROM configuration rows (game code, platform, generation, named offsets).

Usage:
    python3 scripts/ingest_data.py --species data/species.json --configs data/configs.json
"""

# Ensure project root is in sys.path for direct execution
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from cartridge_engine.core.db import DEFAULT_DB_URL
from cartridge_engine.core.exceptions import CartridgeEngineError
from cartridge_engine.db import ReferenceDatabase, load_species_json, load_configs_json

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def ingest(db_url: str, species_path: str = None, configs_path: str = None) -> None:
    """Loads the given JSON files into the database at ``db_url``.

    Args:
        db_url (str): SQLAlchemy URL of the target database.
        species_path (str): Species JSON list, or None to skip.
        configs_path (str): ROM configuration JSON list, or None to skip.
    """
    if db_url.startswith("sqlite:///"):
        db_dir = os.path.dirname(db_url[len("sqlite:///"):])
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    with ReferenceDatabase(db_url) as db:
        if species_path:
            logger.info("Ingesting Species...")
            count = db.add_species(load_species_json(species_path))
            logger.info(f"Processed {count} species.")
        if configs_path:
            logger.info("Ingesting ROM Configurations...")
            count = db.add_game_configs(load_configs_json(configs_path))
            logger.info(f"Processed {count} configurations.")


def main():
    parser = argparse.ArgumentParser(description="Load species and ROM configuration JSON into the reference database.")
    parser.add_argument("--db", default=DEFAULT_DB_URL, help="SQLAlchemy database URL")
    parser.add_argument("--species", help="Species JSON file")
    parser.add_argument("--configs", help="ROM configuration JSON file")
    args = parser.parse_args()

    if not args.species and not args.configs:
        parser.error("nothing to ingest, pass --species and/or --configs")

    try:
        ingest(args.db, args.species, args.configs)
        print("Done.")
    except CartridgeEngineError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
