"""MaxFlow Assistant - Entry Point.

Запускает FastAPI приложение через uvicorn.
"""

from src.main import main_uvicorn

if __name__ == "__main__":
    main_uvicorn()
