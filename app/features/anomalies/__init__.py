"""Order-frequency anomaly detection."""

from app.features.anomalies.rules import Anomaly, AnomalyType, check_product

__all__ = ["Anomaly", "AnomalyType", "check_product"]
