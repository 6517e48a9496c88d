"""
Reset del mirror remoto
Progetto: Oficina OS (Gestionale Ordini di Servizio)

Elimina e ricrea le tabelle del database remoto configurato in
OFICINA_REMOTE_DATABASE_URL. Il documento locale non viene toccato.
"""

import asyncio
import os
import sys

# Aggiungi backend/ alla PYTHONPATH per importare oficina.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from oficina.core.config import get_settings
from oficina.core.database import create_remote_database


async def reset():
    database = create_remote_database(get_settings())
    if database is None:
        print("OFICINA_REMOTE_DATABASE_URL non impostato: nessun database da resettare.")
        return
    print("Connessione al database remoto, eliminazione tabelle...")
    try:
        await database.drop_tables()
        print("Tabelle eliminate. Creazione nuove tabelle...")
        await database.create_tables()
    finally:
        await database.dispose()
    print("Mirror remoto resettato con successo!")

if __name__ == "__main__":
    asyncio.run(reset())
