"""Core module - Agregación por nodo, estimación de DQI y protocolo ACK/feedback.

Estructura:
- domain/      → Mensajes, perfil por nodo, errores
- registry     → Registro de perfiles (get-or-create atómico)
- estimator    → Estimador de DQI / tasa de pérdida
- scheduler    → Detección de fronteras de ventana
- dispatcher   → Enrutado, ACKs, ingesta y feedback
- adapters/    → Payload del enlace ↔ dominio
- validation/  → Esquemas del payload
- transport/   → Enlace MQTT (pasarela de radio)
- monitoring/  → Stats y métricas
"""
