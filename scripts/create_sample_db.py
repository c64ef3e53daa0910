#!/usr/bin/env python
"""
Create a sample sqlgate.sqlite database for trying the server.

Run with: python -m scripts.create_sample_db
"""

import random
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path


def create_sample_database():
    db_path = Path(__file__).resolve().parents[1] / "data" / "sqlgate.sqlite"
    db_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"Creating sample database at: {db_path}")

    conn = sqlite3.connect(str(db_path))
    cursor = conn.cursor()

    cursor.executescript("""
        DROP TABLE IF EXISTS orders;
        DROP TABLE IF EXISTS users;

        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE orders (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id),
            amount REAL NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            note TEXT,
            created_at TEXT NOT NULL
        );

        CREATE INDEX idx_orders_user ON orders(user_id);
        CREATE INDEX idx_orders_status_created ON orders(status, created_at);
    """)

    names = ["Alice", "Bob", "Carol", "Dave", "Erin", "Frank", "Grace", "Heidi"]
    start = datetime(2024, 1, 1)
    users = [
        (f"{n.lower()}@example.com", n, (start + timedelta(days=i)).strftime("%Y-%m-%d %H:%M:%S"))
        for i, n in enumerate(names)
    ]
    cursor.executemany("INSERT INTO users (email, name, created_at) VALUES (?, ?, ?)", users)

    print("Generating sample orders...")
    orders = []
    for _ in range(500):
        created = start + timedelta(minutes=random.randint(0, 60 * 24 * 180))
        orders.append((
            random.randint(1, len(names)),
            round(random.uniform(5, 500), 2),
            random.choice(["pending", "paid", "shipped", "cancelled"]),
            None,
            created.strftime("%Y-%m-%d %H:%M:%S"),
        ))
    cursor.executemany(
        "INSERT INTO orders (user_id, amount, status, note, created_at) VALUES (?, ?, ?, ?, ?)",
        orders,
    )

    conn.commit()

    cursor.execute("SELECT COUNT(*) FROM orders")
    count = cursor.fetchone()[0]
    conn.close()

    print(f"✅ Created {len(users)} users and {count:,} orders")
    print(f"   Database: {db_path}")


if __name__ == "__main__":
    create_sample_database()
