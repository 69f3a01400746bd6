"""Load the parsed variable table into MongoDB."""

import argparse
from datetime import datetime
from pathlib import Path

from gss_codebook.config_loader import load_pipeline_config, resolve_path
from gss_codebook.parse.save_variables import iter_records

from .mongodb_client import MongoDBClient

VARIABLES_COLLECTION = "variables"


def load_variables_to_mongodb(
    table_path: Path,
    mongodb_client: MongoDBClient,
    collection_name: str = VARIABLES_COLLECTION,
) -> int:
    """Upsert every record of a saved variable table.

    Documents are keyed by (id, _row), `_row` being the record's position in
    the table, so variables sharing an id across pages are all kept.

    Args:
        table_path: File written by save_variable_table
        mongodb_client: Connected MongoDB client
        collection_name: Name of MongoDB collection

    Returns:
        Number of documents written
    """
    if not table_path.exists():
        raise FileNotFoundError(f"Variable table not found: {table_path}")

    print(f"Loading variables: {table_path.name}")
    collection = mongodb_client.get_collection(collection_name)
    loaded_at = datetime.now().isoformat()
    inserted = updated = 0
    for row, record in enumerate(iter_records(table_path)):
        doc = record.model_dump(mode="json")
        doc["_row"] = row
        doc["_loaded_at"] = loaded_at
        doc["_file_path"] = str(table_path)
        result = collection.update_one({"id": record.id, "_row": row}, {"$set": doc}, upsert=True)
        if result.upserted_id is not None:
            inserted += 1
        else:
            updated += 1
    print(f"  Inserted {inserted}, updated {updated} variable(s)")
    return inserted + updated


def create_indexes(mongodb_client: MongoDBClient, collection_name: str = VARIABLES_COLLECTION) -> None:
    """Create the lookup indexes used by the API."""
    print("Creating indexes...")
    mongodb_client.create_indexes(collection_name, [[("id", 1), ("_row", 1)], [("description", 1)]])


def main():
    """Main entry point for loading variables into MongoDB."""
    config = load_pipeline_config()
    parser = argparse.ArgumentParser(description="Load the parsed variable table into MongoDB")
    parser.add_argument(
        "--table",
        type=Path,
        default=resolve_path(config["output_path"]),
        help="Variable table written by the parser (.json.gz)",
    )
    parser.add_argument("--connection-string", type=str, help="MongoDB connection string")
    parser.add_argument("--database", type=str, help="Database name")
    parser.add_argument("--create-indexes", action="store_true", help="Create indexes after loading")
    args = parser.parse_args()

    with MongoDBClient(connection_string=args.connection_string, database_name=args.database) as client:
        count = load_variables_to_mongodb(args.table, client)
        if args.create_indexes:
            create_indexes(client)
    print(f"\n[OK] Loaded {count} variable(s)")


if __name__ == "__main__":
    main()
