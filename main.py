from activity_sync.main import _cli_entrypoint

if __name__ == "__main__":
    # Credentials and knobs come from the environment or a .env file in the
    # working directory; see activity_sync/garmin/config.py.
    _cli_entrypoint()
