"""
Example 01: Basic Query Execution

This example demonstrates opening a database from a credentials file and
running queries through txsql's ConnectionRegistry and Query.
"""

import json
import tempfile
from pathlib import Path

from txsql import ConnectionRegistry


def main():
    # Write a credentials file pointing at a temporary SQLite database
    work_dir = Path(tempfile.mkdtemp())
    credentials_file = work_dir / "sql_credentials.json"
    credentials_file.write_text(
        json.dumps({"app": {"driver": "sqlite", "db": str(work_dir / "app.db")}})
    )

    with ConnectionRegistry.from_file(credentials_file, default_name="app") as registry:
        db = registry.open()

        db.execute("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE
            )
        """)

        print("=== Basic Query Execution ===\n")

        # Prepared INSERT: result carries the insert id and affected rows
        insert = db.execute(
            "INSERT INTO users (name, email) VALUES (?, ?)", ["Alice", "alice@example.com"]
        )
        print(f"INSERT result: {insert.get_result()}")

        # Re-execute the same prepared statement with new values
        insert.execute(params=["Bob", "bob@example.com"])
        print(f"Second INSERT id: {insert.get_insert_id()}")
        print(f"Previous INSERT id: {insert.get_insert_id(previous=True)}\n")

        # SELECT returns a list of dicts
        users = db.execute("SELECT id, name FROM users ORDER BY id").get_result()
        print(f"SELECT result ({len(users)} rows):")
        for user in users:
            print(f"  - {user['id']}: {user['name']}")
        print()

        # single=True returns the first row or None
        user = db.execute("SELECT * FROM users WHERE email = ?", ["bob@example.com"], single=True)
        print(f"Single row: {user.get_result()}")
        print(f"Debug text: {user.get_unsafe_raw_query()}")

    # Clean up
    (work_dir / "app.db").unlink()
    credentials_file.unlink()
    work_dir.rmdir()


if __name__ == "__main__":
    main()
