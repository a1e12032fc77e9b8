import uuid
from sqlalchemy.orm import sessionmaker
from domain.errors import NotFoundError
from infra.db.models import FileRecord

class FilesRepository:
    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def save(self, ftype: str, path: str, name: str) -> str:
        fid = f"file_{uuid.uuid4().hex}"
        with self._sessions() as s:
            s.add(FileRecord(id=fid, type=ftype, path=path, name=name))
            s.commit()
        return fid

    def exists(self, file_id: str) -> bool:
        with self._sessions() as s:
            return s.get(FileRecord, file_id) is not None

    def get_path(self, file_id: str) -> str:
        with self._sessions() as s:
            rec = s.get(FileRecord, file_id)
            if not rec:
                raise NotFoundError(f"file {file_id} not found")
            return rec.path
