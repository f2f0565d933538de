"""
Example 03: Replaying Failed Queries

This example demonstrates collecting failed queries in a QueryQueue, inspecting
their stored errors and running them again with corrected values.
"""

import tempfile
from pathlib import Path

from txsql import ConnectionRegistry, Credentials, Query, QueryQueue, RequestError


def main():
    work_dir = Path(tempfile.mkdtemp())
    credentials = Credentials(driver="sqlite", db=str(work_dir / "app.db"))

    with ConnectionRegistry({"app": credentials}, default_name="app") as registry:
        db = registry.open()
        db.execute("CREATE TABLE tags (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT UNIQUE)")

        failed = QueryQueue()
        for name in ["python", "sql", "python", "sql"]:
            query = Query(db.connection)
            try:
                db.rerun(query, "INSERT INTO tags (name) VALUES (?)", [name])
            except RequestError:
                failed.push(query)

        print(f"=== {len(failed)} failed inserts ===\n")
        while (query := failed.pop()) is not None:
            error = query.get_error()
            print(f"{query.get_unsafe_raw_query()} -> duplicate key: {error.is_duplicate_key}")
            name = query.get_escape_values()[0]
            db.rerun(query, query.get_raw_query(), [f"{name}-2"])
            print(f"  retried as id {query.get_insert_id()}")

        tags = db.execute("SELECT name FROM tags ORDER BY id").get_result()
        print(f"\nTags: {[tag['name'] for tag in tags]}")

    (work_dir / "app.db").unlink()
    work_dir.rmdir()


if __name__ == "__main__":
    main()
