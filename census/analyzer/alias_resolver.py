import os
from typing import Iterable, List, Optional

from ..config import SUPPORT_EXT
from ..models import AliasTable
from ..utils.file_utils import FileExists, probe_with_extensions

WILDCARD = '/*'


class AliasResolver:
    """
    Path-alias resolution engine.
    Rewrites aliased import specifiers ('@/components/Foo') to files on disk
    using the merged alias tables of tsconfig/jsconfig and bundler configs.
    """

    def __init__(self, table: Optional[AliasTable] = None, exists: FileExists = os.path.exists,
                 extensions: Iterable[str] = SUPPORT_EXT):
        self.table: AliasTable = dict(table or {})
        self.exists = exists
        self.extensions = list(extensions)

    @staticmethod
    def merge(*tables: Optional[AliasTable]) -> AliasTable:
        """
        Merges alias tables in load order.
        Later tables overwrite identical keys, other keys are unioned.
        A key that is overwritten keeps its original position.
        """
        merged: AliasTable = {}
        for table in tables:
            if not table:
                continue
            for alias, bases in table.items():
                if isinstance(bases, str):
                    bases = [bases]
                merged[alias] = list(bases)
        return merged

    def resolve(self, import_path: str) -> str:
        """
        Resolves an import specifier against the alias table.

        Returns the first existing file produced by substituting an alias base
        path, or the import path unchanged when nothing resolves.
        """
        if not import_path or not self.table:
            return import_path

        for alias, bases in self.table.items():
            for base in bases:
                candidate = self._substitute(import_path, alias, base)
                if not candidate:
                    continue
                found, path = probe_with_extensions(candidate, self._probe_order(candidate), self.exists)
                if found:
                    return path

        return import_path

    def _substitute(self, import_path: str, alias: str, base: str) -> str:
        if alias.endswith(WILDCARD):
            prefix = alias[:-1]                       # '@/*' -> '@/'
            if not import_path.startswith(prefix):
                return ''
            base_prefix = base[:-1] if base.endswith('*') else base.rstrip('/') + '/'
            return base_prefix + import_path[len(prefix):]

        # Exact-prefix alias ('@', '~components'): must stop at a path boundary
        if import_path == alias or not import_path.startswith(alias):
            return ''
        remainder = import_path[len(alias):]
        if not remainder.startswith('/') and not alias.endswith('/'):
            return ''
        return base.rstrip('/') + '/' + remainder.lstrip('/')

    def _probe_order(self, candidate: str) -> List[str]:
        # A recognized extension means "check as is"; anything else gets probed
        ext = os.path.splitext(candidate)[1]
        if ext in self.extensions:
            return [ext]
        return list(self.extensions)
