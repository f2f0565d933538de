"""
Example 02: Transactions

This example demonstrates lock-token transactions and the forced rollback that
follows a failing statement inside a transaction.
"""

import tempfile
from pathlib import Path

from txsql import ConnectionRegistry, Credentials, RollbackError


def create_user(db, name, email):
    """Manages its own transaction; a held lock token keeps it from committing."""
    db.start_transaction()
    query = db.execute("INSERT INTO users (name, email) VALUES (?, ?)", [name, email])
    db.commit()
    return query.get_insert_id()


def main():
    work_dir = Path(tempfile.mkdtemp())
    credentials = Credentials(driver="sqlite", db=str(work_dir / "app.db"))

    with ConnectionRegistry({"app": credentials}, default_name="app") as registry:
        db = registry.open()
        db.execute("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE
            )
        """)

        print("=== Lock Token ===\n")
        db.start_transaction("signup")
        create_user(db, "Alice", "alice@example.com")
        create_user(db, "Bob", "bob@example.com")
        print(f"Still in transaction after helpers: {db.in_transaction}")
        db.commit("signup")
        print(f"After commit with token: {db.in_transaction}\n")

        print("=== Forced Rollback ===\n")
        try:
            with db.transaction("import"):
                create_user(db, "Carol", "carol@example.com")
                create_user(db, "Dup", "alice@example.com")
        except RollbackError as e:
            print(f"Rolled back: {e}")
            print(f"Erred query: {e.get_erred_query()}")

        count = db.execute("SELECT COUNT(*) AS n FROM users", single=True).get_result()
        print(f"Users after rollback: {count['n']}")

    (work_dir / "app.db").unlink()
    work_dir.rmdir()


if __name__ == "__main__":
    main()
