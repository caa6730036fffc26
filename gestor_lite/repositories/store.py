# ==============================================================================
# ALMACENES CLAVE-VALOR - Persistencia local de blobs
# ==============================================================================
# JsonFileStore: un archivo <clave>.json por colección en DATA_DIR.
# MemoryStore:   diccionario en memoria (tests, modo STORAGE_BACKEND=memory).
# ==============================================================================

import os
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional


class KeyValueStore(ABC):
    """Clase base para almacenes de blobs de texto indexados por clave."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Lee el blob de una clave.

        Returns:
            Texto guardado o None si la clave no existe
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Escribe (reemplaza) el blob de una clave."""
        pass


class JsonFileStore(KeyValueStore):
    """
    Almacén sobre archivos JSON.

    Ejemplo: clave "products" → <data_dir>/products.json
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, data_dir: str):
        """
        Inicializa el almacén.

        Args:
            data_dir: Carpeta donde viven los archivos (se crea si no existe)
        """
        self.data_dir = data_dir
        os.makedirs(self.data_dir, exist_ok=True)

    def path_for(self, key: str) -> str:
        """Ruta del archivo que guarda una clave."""
        return os.path.join(self.data_dir, f'{key}.json')

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        with self._file_lock:
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    return f.read()
            except FileNotFoundError:
                return None

    def set(self, key: str, value: str) -> None:
        """
        Escribe el blob de forma atómica.

        Raises:
            OSError: Si hay error de escritura
        """
        path = self.path_for(key)
        with self._file_lock:
            # Escribir a archivo temporal primero para atomicidad
            temp_path = path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    f.write(value)
                os.replace(temp_path, path)
            except Exception:
                # Limpiar archivo temporal si algo falla
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise


class MemoryStore(KeyValueStore):
    """Almacén en memoria. Los datos se pierden al terminar el proceso."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
