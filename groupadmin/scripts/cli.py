"""
A simple CLI for running a sample server.
"""

import os
import sys

import uvicorn


def run_server(**kwargs):
    for k, v in kwargs.items():
        os.environ[k] = v

    uvicorn.run("groupadmin.api.app:app", host="0.0.0.0")


def main():
    try:
        command = sys.argv[1]
        mode = sys.argv[2] if command == "run" else None
    except IndexError:
        print("Only supported commands are groupadmin run dev, groupadmin run prod, or groupadmin setup")
        exit(1)

    if command == "run" and mode == "dev":
        from testcontainers.postgres import PostgresContainer

        with PostgresContainer() as container:
            print(
                f"Container details: username={container.username}, password={container.password}, port={container.get_exposed_port(container.port)}"
            )

            run_server(
                GROUPADMIN_DATABASE_TYPE="postgres",
                GROUPADMIN_DATABASE_USER=container.username,
                GROUPADMIN_DATABASE_PASSWORD=container.password,
                GROUPADMIN_DATABASE_PORT=str(container.get_exposed_port(container.port)),
                GROUPADMIN_DATABASE_HOST="localhost",
                GROUPADMIN_DATABASE_DB=container.dbname,
                GROUPADMIN_DATABASE_ECHO="False",
                GROUPADMIN_CREATE_AUTOMATIC_GROUPS="True",
                GROUPADMIN_CREATE_EXAMPLE_USERS="True",
            )
    elif command == "run" and mode == "prod":
        run_server()
    elif command == "setup":
        from groupadmin.api.setup import initial_setup
        from groupadmin.config.settings import Settings

        initial_setup(settings=Settings())

        print("Setup complete")
        exit(0)
    else:
        print("Only supported commands are groupadmin run dev, groupadmin run prod, or groupadmin setup")
        exit(1)
