# storefront/cli.py
from decimal import Decimal

import click
from werkzeug.security import generate_password_hash

from .extensions import db
from .model import Product, User

SAMPLE_PRODUCTS = [
    {"name": "Kopi Susu 1L", "price": Decimal("45000.00"), "stock_quantity": 40},
    {"name": "Teh Melati 25 bags", "price": Decimal("12500.00"), "stock_quantity": 120},
    {"name": "Gula Aren 500g", "price": Decimal("28000.00"), "stock_quantity": 60},
    {"name": "Keripik Singkong", "price": Decimal("15000.00"), "stock_quantity": 80},
    {"name": "Sambal Bawang", "price": Decimal("22000.00"), "stock_quantity": 35},
]


@click.command("init-db")
def init_db():
    db.create_all()
    click.echo("Tables created")


@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
def create_admin(email, password, name):
    email = email.strip().lower()
    if db.session.query(User.id).filter_by(email=email).first():
        click.echo("Email already exists"); return
    u = User(email=email, name=name, password_hash=generate_password_hash(password), role="admin")
    db.session.add(u); db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")


@click.command("seed-products")
def seed_products():
    added = 0
    for data in SAMPLE_PRODUCTS:
        if db.session.query(Product.id).filter_by(name=data["name"]).first():
            continue
        db.session.add(Product(**data))
        added += 1
    db.session.commit()
    click.echo(f"{added} sample products added")


def register_cli(app):
    app.cli.add_command(init_db)
    app.cli.add_command(create_admin)
    app.cli.add_command(seed_products)
