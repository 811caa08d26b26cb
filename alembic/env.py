"""
Evo Store - Migration Environment
==================================
The database URL comes from config.settings, or from `-x db_url=...`
on the alembic command line. Every model module is imported so that
`alembic revision --autogenerate` sees the full schema.

SQLite (the default store) cannot ALTER most columns in place, so
migrations run in batch mode there.
"""

import sys
import os
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import DATABASE_URL
from config.database import Base

# ==========================================
# Models (registered on Base.metadata)
# ==========================================
from modules.admin.models import HomepageSetting  # noqa: F401
from modules.catalog.models import ProductCategory, Product, CuratedBundle  # noqa: F401
from modules.cart.models import CartSession  # noqa: F401
from modules.coupon.models import Coupon  # noqa: F401
from modules.order.models import Order  # noqa: F401
from modules.pricing.models import PricingRule  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("db_url") or DATABASE_URL


def _configure(**kwargs):
    url = _database_url()
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
