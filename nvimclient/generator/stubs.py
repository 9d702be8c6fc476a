"""Render ``.pyi`` stubs describing the API a host will generate."""

import keyword
from dataclasses import dataclass, field

from jinja2 import Environment, PackageLoader

from .typeexpr import annotation_for
from .types import ApiMetadata
from .wrappers import build_method

env = Environment(
    loader=PackageLoader("nvimclient.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("api.pyi.j2")


@dataclass
class StubParam:
    name: str
    annotation: str


@dataclass
class StubMethod:
    name: str
    function_name: str
    params: list[StubParam]
    return_annotation: str


@dataclass
class StubClass:
    name: str
    code: int
    methods: list[StubMethod] = field(default_factory=list)


def _param_name(name: str) -> str:
    """Keep parameter names legal Python identifiers."""
    return f"{name}_" if keyword.iskeyword(name) or name == "cb" else name


def stub_model(metadata: ApiMetadata) -> tuple[list[StubClass], list[StubMethod]]:
    """Group the generated methods by owner, sorted by name."""
    ext_names = frozenset(metadata.types)
    classes = {name: StubClass(name=name, code=spec.id) for name, spec in metadata.types.items()}
    client: dict[str, StubMethod] = {}

    for func in metadata.functions:
        owner, method = build_method(None, func, classes)
        param_types = func.parameter_types
        if not owner.is_global:
            param_types = param_types[1:]
        stub = StubMethod(
            name=method.metadata.name,
            function_name=func.name,
            params=[
                StubParam(_param_name(name), annotation_for(ptype, ext_names))
                for ptype, name in zip(param_types, method.parameters)
            ],
            return_annotation=annotation_for(func.return_type, ext_names),
        )
        if owner.is_global:
            client[stub.name] = stub
        else:
            target = classes[owner.type_name]
            target.methods = [m for m in target.methods if m.name != stub.name] + [stub]

    for cls in classes.values():
        cls.methods.sort(key=lambda m: m.name)
    return sorted(classes.values(), key=lambda c: c.name), sorted(client.values(), key=lambda m: m.name)


def render(metadata: ApiMetadata) -> str:
    """Render ``metadata`` to stub source code."""
    ext_classes, client_methods = stub_model(metadata)
    api_level = (metadata.version or {}).get("api_level")
    return template.render(
        ext_classes=ext_classes,
        client_methods=client_methods,
        api_level=api_level,
        BLANK_LINE="",
    )
