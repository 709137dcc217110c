import logging


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
    # passlib reads the bcrypt backend version and warns on newer releases
    logging.getLogger("passlib").setLevel(logging.ERROR)
