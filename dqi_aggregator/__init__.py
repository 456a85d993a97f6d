"""Agregador de estación base para redes de sensores inalámbricos (WSN).

Recibe lecturas y resúmenes de calidad de los nodos, confirma (ACK) y
devuelve feedback de DQI / tasa de pérdida por ventana de observación.
"""

__version__ = "0.4.0"
