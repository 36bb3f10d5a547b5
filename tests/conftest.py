from tests.fixtures.db_client import (  # noqa: F401
    client,
    file_store,
    make_client,
    make_file_store,
    mongo_client,
)
