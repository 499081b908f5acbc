from enum import Enum


class EnumEnvironment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class EnumLogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnumLockBackend(str, Enum):
    REDIS = "redis"
    LOCAL = "local"


# Libraries that log every request at INFO level.
NOISY_LOGGERS = ("httpx", "httpcore", "pymongo", "pika", "amqp")
