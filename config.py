import os
import log
from dotenv import load_dotenv

# Load .env file into environment
load_dotenv()


class Config:
    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./experimentation.db")
        self.log_level = os.getenv("LOG_LEVEL", default="INFO")
        self.log_file = os.getenv("LOG_FILE", default="ab_stats_engine.log")
        self.default_date_range = os.getenv("DEFAULT_DATE_RANGE", default="last7")
        self.event_retention_days = int(os.getenv("EVENT_RETENTION_DAYS", 90))

        # Call setup_logging when the application starts
        log.setup_logging(self.log_level, self.log_file)

    def __repr__(self):
        return f"<Settings database_url={self.database_url} loglevel={self.log_level}, log_file:{self.log_file}, default_date_range:{self.default_date_range}, event_retention_days:{self.event_retention_days}>"

config = Config()
