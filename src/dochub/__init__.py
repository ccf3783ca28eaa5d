"""dochub: indexación y búsqueda de la base documental en memoria."""

__version__ = "0.1.0"
