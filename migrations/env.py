import logging
from logging.config import fileConfig

from flask import current_app

from alembic import context

# Объект конфигурации Alembic (config): параметры из alembic.ini.
config = context.config

# Логгеры Alembic по настройкам alembic.ini.
fileConfig(config.config_file_name)
logger = logging.getLogger('alembic.env')


def get_engine():
    return current_app.extensions['migrate'].db.engine


def get_engine_url():
    return get_engine().url.render_as_string(hide_password=False).replace('%', '%%')


config.set_main_option('sqlalchemy.url', get_engine_url())
target_db = current_app.extensions['migrate'].db


def get_metadata():
    return target_db.metadata


def _is_sqlite(url: str) -> bool:
    return url.startswith('sqlite')


def run_migrations_offline():
    """Миграции в «офлайн»-режиме: только URL, SQL выводится текстом."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=get_metadata(),
        literal_binds=True,
        compare_type=True,
        render_as_batch=_is_sqlite(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Миграции в «онлайн»-режиме: Engine + соединение с БД."""

    # не создаём пустые ревизии, если схема не изменилась
    def process_revision_directives(context, revision, directives):
        if getattr(config.cmd_opts, 'autogenerate', False):
            script = directives[0]
            if script.upgrade_ops.is_empty():
                directives[:] = []
                logger.info('No changes in schema detected.')

    conf_args = dict(current_app.extensions['migrate'].configure_args)
    if conf_args.get("process_revision_directives") is None:
        conf_args["process_revision_directives"] = process_revision_directives
    # enum-колонки хранятся как VARCHAR: следим за изменением длины/типа
    conf_args.setdefault('compare_type', True)

    connectable = get_engine()

    with connectable.connect() as connection:
        # ALTER TABLE на SQLite только через batch-режим
        conf_args.setdefault('render_as_batch', connection.dialect.name == 'sqlite')
        context.configure(
            connection=connection,
            target_metadata=get_metadata(),
            **conf_args
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
