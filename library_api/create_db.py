from .config import Settings, configure_logging
from .database import Database

settings = Settings.from_env()
configure_logging(settings.log_level)
database = Database(settings.database_url).init()
database.close()
print(f'Database and tables created at {settings.database_url}')
