"""Core module - Piezas puras del servicio de telemetría.

Estructura:
- domain/          → Tipos de identificador, eventos y mapa de módulos
- classification/  → Clasificador de identificadores
"""
