import os
from dotenv import load_dotenv
load_dotenv()  # fine locally; env vars win in deployment

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")
    # three slashes for a path relative to the instance folder
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///jewellery.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    QUOTATION_PREFIX = os.getenv("QUOTATION_PREFIX", "PJ-QTN")
    ORDER_PREFIX = os.getenv("ORDER_PREFIX", "PJ-ORD")
    BILL_PREFIX = os.getenv("BILL_PREFIX", "PJ-BILL")

class DevConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = "DEBUG"

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "WARNING"
