"""
Registry Store lifecycle: open/close, snapshots and restore.

Every request holds a shared lock on the store for its whole duration. Views
marked with ``store.exclusive`` skip that and take the exclusive lock
themselves, so a restore never runs while another request in this process is
reading or writing. The lock is per process: run restores with a single
worker.
"""

import os
import shutil
import threading
from contextlib import contextmanager
from datetime import datetime, timezone

from flask import current_app, g, request
from werkzeug.utils import secure_filename

BACKUP_SUFFIX = '.sqlite'


class ReadWriteLock:
    """Many readers or one writer; waiting writers block new readers"""

    def __init__(self):
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class RegistryStore:

    def __init__(self):
        self.lock = ReadWriteLock()

    def init_app(self, app):
        app.extensions['registry_store'] = self
        app.before_request(self._enter_request)
        app.teardown_request(self._exit_request)

    @staticmethod
    def exclusive(f):
        """Mark a view as needing the store to itself (it locks on its own)"""
        f.exclusive_store_access = True
        return f

    def _enter_request(self):
        view = current_app.view_functions.get(request.endpoint)
        if getattr(view, 'exclusive_store_access', False):
            return
        self.lock.acquire_read()
        g.holds_store_read_lock = True

    def _exit_request(self, exc=None):
        if g.pop('holds_store_read_lock', False):
            self.lock.release_read()

    # Lifecycle

    def open(self):
        from police_id import db
        from police_id import models  # noqa: F401  (register tables)
        db.create_all()

    def close(self):
        from police_id import db
        db.session.remove()
        db.engine.dispose()

    def database_path(self):
        from police_id import db
        from police_id.errors import StorageFailure

        url = db.engine.url
        if url.get_backend_name() != 'sqlite' or not url.database or url.database == ':memory:':
            raise StorageFailure('Backups are only supported for SQLite file databases')
        return url.database

    def backup_folder(self):
        folder = current_app.config['BACKUP_FOLDER']
        os.makedirs(folder, exist_ok=True)
        return folder

    # Backups

    def snapshot(self):
        """Copy the live database file into the backup folder"""
        from police_id.errors import StorageFailure

        with self.lock.write():
            source = self.database_path()
            filename = f"backup-{datetime.utcnow().strftime('%Y%m%d-%H%M%S-%f')}{BACKUP_SUFFIX}"
            destination = os.path.join(self.backup_folder(), filename)
            self.close()
            try:
                shutil.copyfile(source, destination)
            except OSError as e:
                current_app.logger.error(f"Snapshot failed: {e}")
                raise StorageFailure('Could not write backup file')

        current_app.logger.info(f"Created backup {filename}")
        return self._describe(destination)

    def list_backups(self):
        folder = self.backup_folder()
        backups = [
            self._describe(os.path.join(folder, name))
            for name in os.listdir(folder)
            if name.endswith(BACKUP_SUFFIX)
        ]
        return sorted(backups, key=lambda b: (b['createdAt'], b['filename']), reverse=True)

    def restore(self, filename):
        from police_id.errors import NotFound, ValidationError

        if not isinstance(filename, str) or secure_filename(filename) != filename or not filename.endswith(BACKUP_SUFFIX):
            raise ValidationError('Invalid backup filename')
        path = os.path.join(self.backup_folder(), filename)
        if not os.path.isfile(path):
            raise NotFound(f'No backup named {filename}')

        self.swap_underlying_file(path)
        current_app.logger.info(f"Restored database from {filename}")

    def swap_underlying_file(self, source_path):
        """Replace the live database file with `source_path` while no request is running"""
        from police_id.errors import StorageFailure
        from police_id import registry

        with self.lock.write():
            target = self.database_path()
            # Numbers issued since the backup was taken must not be handed out again
            issued = registry.member_sequence_high_water()
            self.close()
            try:
                shutil.copy2(source_path, target)
            except OSError as e:
                current_app.logger.error(f"Restore failed: {e}")
                raise StorageFailure('Could not replace database file')
            finally:
                self.open()
            registry.raise_member_sequence(issued)

    @staticmethod
    def _describe(path):
        stat = os.stat(path)
        return {
            'filename': os.path.basename(path),
            'createdAt': datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
            'size': stat.st_size,
        }
