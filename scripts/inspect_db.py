import argparse
import os
import sys

current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from cartridge_engine.core.db import DEFAULT_DB_URL
from cartridge_engine.core.exceptions import ReferenceDataError
from cartridge_engine.db import ReferenceDatabase


def inspect_species(db, limit=10, search=None):
    species = db.list_species()
    if search:
        # Search by Species Name or ID
        if search.isdigit():
            species = [s for s in species if s.national_id == int(search)]
        else:
            species = [s for s in species if search.lower() in s.name.lower()]

    headers = ["ID", "Species", "Types", "HP", "Atk", "Def", "SpA", "SpD", "Spe", "BST", "Gen", "Leg"]
    col_widths = [5, 15, 18, 5, 5, 5, 5, 5, 5, 6, 5, 5]

    header_row = "".join(h.ljust(w) for h, w in zip(headers, col_widths))
    print("-" * len(header_row))
    print(header_row)
    print("-" * len(header_row))

    for s in species[:limit]:
        row = [
            s.national_id, s.name, "/".join(s.types), s.hp, s.attack, s.defense,
            s.sp_attack, s.sp_defense, s.speed, s.bst, s.generation, "Y" if s.is_legendary else "",
        ]
        print("".join(str(val)[:w - 1].ljust(w) for val, w in zip(row, col_widths)))


def inspect_configs(db):
    configs = db.list_game_configs()
    print("-" * 60)
    for c in configs:
        print(f"{c.game_code:<8} {c.platform.value:<4} Gen {c.generation}  {c.game_name}")
        for name, value in c.offsets.items():
            print(f"    {name}: {value if isinstance(value, tuple) else hex(value)}")
    print("-" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Inspect the reference database in human-readable format.")
    parser.add_argument("--db", default=DEFAULT_DB_URL, help="SQLAlchemy database URL")
    parser.add_argument("--limit", type=int, default=20, help="Number of species to show")
    parser.add_argument("--configs", action="store_true", help="Show ROM configurations instead of species")
    parser.add_argument("search", nargs="?", help="Search term (Species Name or ID)")

    args = parser.parse_args()
    try:
        with ReferenceDatabase(args.db) as db:
            if args.configs:
                inspect_configs(db)
            else:
                inspect_species(db, limit=args.limit, search=args.search)
    except ReferenceDataError as e:
        print(f"Database error: {e}")
