# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
#
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── gestor_lite/     <- Paquete Python
#       ├── main.py
#       ├── services/
#       └── repositories/
#
# ==============================================================================

from gestor_lite.main import create_app

app = create_app()

# Para desarrollo local:
#   python wsgi.py
if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
