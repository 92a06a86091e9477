import pytest

from envpath.envpath_platform import Lookups, Platform


class FakeLookups(Lookups):
    """In-memory lookups that record every call, for deterministic tests."""

    def __init__(self, env=None, consts=None, base_dirs=None, project_dirs=None,
                 existing=(), platform=Platform.LINUX, temp="/tmp", writable=True):
        self.env = dict(env or {})
        self.consts = dict(consts or {})
        self.base_dirs = dict(base_dirs or {})
        self.project_dirs = dict(project_dirs or {})
        self.existing = set(existing)
        self.platform = platform
        self.temp = temp
        self.writable = writable
        self.calls = []

    def lookup_env(self, name):
        self.calls.append(("env", name))
        return self.env.get(name) or None

    def lookup_const(self, key):
        self.calls.append(("const", key))
        return self.consts.get(key)

    def lookup_base_dir(self, key, platform):
        self.calls.append(("dir", key))
        value = self.base_dirs.get(key)
        if isinstance(value, Exception):
            raise value
        return value

    def lookup_project_dir(self, triple, key, platform):
        self.calls.append(("proj", triple.name, key))
        return self.project_dirs.get((triple.name, key))

    def path_exists(self, path):
        self.calls.append(("exists", path))
        return path in self.existing

    def temp_dir(self):
        return self.temp

    def is_writable(self, path):
        return self.writable


@pytest.fixture
def make_lookups():
    return FakeLookups
