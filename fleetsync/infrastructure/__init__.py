"""
Infrastructure module - Infrastructure Layer

MongoDB store, IoT Hub and LoRaWAN gateways, Redis job locks, health
checks and the Celery worker.
"""
