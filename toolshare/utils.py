# toolshare/utils.py
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Reloj por defecto: UTC naive, igual que lo devuelve Mongo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """
    Normaliza a UTC sin tzinfo.
    Un datetime naive se asume ya en UTC; uno con zona se convierte.
    Así se pueden comparar fechas de la petición con las guardadas en BD.
    """
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
