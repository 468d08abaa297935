#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

MODULE_DIRECTIVE_RE = re.compile(r"^\s*module\s+\"?([^\s\"]+)\"?\s*$", re.MULTILINE)


def read_module_path(root: Path) -> Optional[str]:
    """
    Return the module path declared by root/go.mod, if any.
    """
    gomod = root / "go.mod"
    if not gomod.is_file():
        return None
    match = MODULE_DIRECTIVE_RE.search(gomod.read_text(encoding="utf-8"))
    return match.group(1) if match else None


@dataclass
class SourceSearchPaths:
    """
    Search configuration for Go packages.

    - system_roots: standard library trees laid out by import path (e.g. $GOROOT/src)
    - project_roots: user trees; a root holding a go.mod serves the packages
      of that module, any other root is laid out by import path

    Resolution rule: system_roots are searched first, then project_roots.
    """
    system_roots: List[Path] = field(default_factory=list)
    project_roots: List[Path] = field(default_factory=list)
    _modules: Dict[Path, Optional[str]] = field(default_factory=dict, repr=False)

    def add_system_root(self, root: str | Path) -> None:
        self.system_roots.append(Path(root))

    def add_project_root(self, root: str | Path) -> None:
        self.project_roots.append(Path(root))

    def module_path(self, root: Path) -> Optional[str]:
        if root not in self._modules:
            self._modules[root] = read_module_path(root)
        return self._modules[root]

    def package_relpath(self, import_path: str) -> Path:
        """
        Convert an import path like 'net/http' to 'net/http'.
        """
        return Path(*import_path.split("/"))

    def candidates(self, import_path: str) -> List[Path]:
        rel = self.package_relpath(import_path)
        result = [root / rel for root in self.system_roots]
        for root in self.project_roots:
            module = self.module_path(root)
            if module is None:
                result.append(root / rel)
            elif import_path == module:
                result.append(root)
            elif import_path.startswith(module + "/"):
                result.append(root / self.package_relpath(import_path[len(module) + 1:]))
        return result

    def resolve(self, import_path: str) -> Path:
        """
        Find the first directory holding Go files for import_path.

        Raises FileNotFoundError if not found.
        """
        for candidate in self.candidates(import_path):
            if candidate.is_dir() and any(is_package_file(p) for p in candidate.iterdir()):
                return candidate

        raise FileNotFoundError(
            f"Package '{import_path}' not found in system_roots or project_roots"
        )


def is_package_file(path: Path) -> bool:
    return path.is_file() and path.suffix == ".go" and not path.name.endswith("_test.go")
