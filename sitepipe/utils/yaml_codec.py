from __future__ import annotations

import io
from collections.abc import Callable
from typing import IO, Any, Optional

#
# PyYAML is significantly faster at loading, and ruamel.yaml can dump
# mappings preserving key order. Use whichever is available for each job,
# preferring PyYAML for loading and ruamel.yaml for dumping.
#

Load = Callable[[IO[str]], Any]
Loads = Callable[[str], Any]
Dumps = Callable[[Any], str]

load_ruamel: Optional[Load]
loads_ruamel: Optional[Loads]
dumps_ruamel: Optional[Dumps]

load_pyyaml: Optional[Load]
loads_pyyaml: Optional[Loads]
dumps_pyyaml: Optional[Dumps]

load: Load
loads: Loads
dumps: Dumps

# Exception classes raised by the YAML parsers in use
errors: tuple[type[Exception], ...] = ()

try:
    import ruamel.yaml

    yaml_loader = ruamel.yaml.YAML(typ="safe", pure=True)

    def loads_ruamel(string: str) -> Any:
        return yaml_loader.load(string)

    def load_ruamel(file: IO[str]) -> Any:
        return yaml_loader.load(file)

    yaml_dumper = ruamel.yaml.YAML(typ="rt", pure=True)
    yaml_dumper.allow_unicode = True
    yaml_dumper.default_flow_style = False
    yaml_dumper.explicit_start = True  # type: ignore

    def dumps_ruamel(data: Any) -> str:
        with io.StringIO() as fd:
            yaml_dumper.dump(data, fd)
            return fd.getvalue()

    errors += (ruamel.yaml.YAMLError,)

except ModuleNotFoundError:
    load_ruamel = None
    loads_ruamel = None
    dumps_ruamel = None

try:
    import yaml

    SafeLoader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)
    SafeDumper = getattr(yaml, "CSafeDumper", yaml.SafeDumper)

    def loads_pyyaml(string: str) -> Any:
        return yaml.load(string, Loader=SafeLoader)

    def load_pyyaml(file: IO[str]) -> Any:
        return yaml.load(file, Loader=SafeLoader)

    def dumps_pyyaml(data: Any) -> str:
        return yaml.dump(
            data,
            stream=None,
            default_flow_style=False,
            allow_unicode=True,
            explicit_start=True,
            sort_keys=False,
            Dumper=SafeDumper,
        )

    errors += (yaml.YAMLError,)

except ModuleNotFoundError:
    load_pyyaml = None
    loads_pyyaml = None
    dumps_pyyaml = None


if load_pyyaml and loads_pyyaml:
    load = load_pyyaml
    loads = loads_pyyaml
elif load_ruamel and loads_ruamel:
    load = load_ruamel
    loads = loads_ruamel
else:
    raise RuntimeError("Neither PyYAML nor ruamel.YAML are installed")

if dumps_ruamel:
    dumps = dumps_ruamel
elif dumps_pyyaml:
    dumps = dumps_pyyaml
else:
    raise RuntimeError("Neither PyYAML nor ruamel.YAML are installed")


def error_line(exc: Exception) -> Optional[int]:
    """
    Return the 1-based line number where a YAML parse error happened, if the
    parser recorded it
    """
    for name in ("problem_mark", "context_mark"):
        mark = getattr(exc, name, None)
        if mark is not None and getattr(mark, "line", None) is not None:
            return mark.line + 1
    return None
