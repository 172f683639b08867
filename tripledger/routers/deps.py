from fastapi import Request

from tripledger.db.store import RecordStore


def get_store(request: Request) -> RecordStore:
    return request.app.state.store
