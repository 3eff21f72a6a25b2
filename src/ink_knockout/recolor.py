"""Layer recolouring for named SVG render trees.

Layers are located through a name -> elements index built once by walking
the tree, instead of re-querying attributes on every edit. All edits are
in place on the parsed tree.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
NAME_ATTR = "data-name"
SHAPE_TAGS = {"path", "polygon", "rect", "circle", "ellipse", "use", "g"}

GRADIENT_AXES = {
    "horizontal": {"x1": "0%", "y1": "0%", "x2": "100%", "y2": "0%"},
    "vertical": {"x1": "0%", "y1": "0%", "x2": "0%", "y2": "100%"},
}

ET.register_namespace("", SVG_NS)


def _strip_ns(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


def _namespace(element: ET.Element) -> str:
    return element.tag[1:].split("}")[0] if element.tag.startswith("{") else ""


def _parse_style(style: str) -> Dict[str, str]:
    declarations: Dict[str, str] = {}
    for part in style.split(";"):
        if ":" not in part:
            continue
        key, value = part.split(":", 1)
        declarations[key.strip()] = value.strip()
    return declarations


def set_style(element: ET.Element, prop: str, value: str, important: bool = False) -> None:
    """Set one inline style declaration, keeping the others."""
    declarations = _parse_style(element.get("style", ""))
    declarations[prop] = f"{value} !important" if important else value
    element.set("style", "; ".join(f"{k}: {v}" for k, v in declarations.items()))


def force_fill(element: ET.Element, value: str) -> None:
    """Set fill both as attribute and as an important style declaration."""
    element.set("fill", value)
    set_style(element, "fill", value, important=True)


@dataclass
class RenderNode:
    """One renderer layer: its name, its SVG element and its child layers."""

    name: Optional[str]
    element: Optional[ET.Element] = None
    children: List["RenderNode"] = field(default_factory=list)


def tag_layers(nodes: Iterable[RenderNode]) -> int:
    """Write each layer's name onto its SVG element, recursively.

    Nodes without a name or without an element are skipped, but their
    children are still visited.

    Returns:
        Number of elements tagged
    """
    tagged = 0
    for node in nodes:
        if node.name and node.element is not None:
            node.element.set(NAME_ATTR, node.name)
            tagged += 1
        tagged += tag_layers(node.children)
    return tagged


class LayerIndex:
    """Name -> element index over one SVG tree, with paint edits per layer."""

    def __init__(self, svg: ET.Element):
        self.svg = svg
        self._ns = _namespace(svg)
        self._layers: Dict[str, List[ET.Element]] = {}
        self._gradient_counter = 0
        self.reindex()

    @classmethod
    def from_string(cls, text: str) -> "LayerIndex":
        return cls(ET.fromstring(text))

    @classmethod
    def from_file(cls, path: Path) -> "LayerIndex":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"SVG file not found: {path}")
        try:
            return cls(ET.parse(path).getroot())
        except ET.ParseError as e:
            raise RuntimeError(f"Failed to parse SVG {path}: {e}")

    def _qualify(self, local: str) -> str:
        return f"{{{self._ns}}}{local}" if self._ns else local

    def reindex(self) -> None:
        """Rebuild the index from the ``data-name`` attributes in the tree."""
        self._layers.clear()
        for element in self.svg.iter():
            name = element.get(NAME_ATTR)
            if name:
                self._layers.setdefault(name, []).append(element)
        logger.debug(f"Indexed {len(self._layers)} named layers")

    def names(self) -> List[str]:
        return sorted(self._layers)

    def tag(self, element: ET.Element, name: str) -> None:
        """Name an element and register it under that name."""
        element.set(NAME_ATTR, name)
        roots = self._layers.setdefault(name, [])
        if not any(root is element for root in roots):
            roots.append(element)

    def layer_roots(self, name: str) -> List[ET.Element]:
        return list(self._layers.get(name, []))

    def layer_shapes(self, name: str) -> List[ET.Element]:
        """All paintable descendants of the layer's roots, each listed once."""
        seen = set()
        shapes = []
        for root in self._layers.get(name, []):
            for element in root.iter():
                if element is root or _strip_ns(element.tag) not in SHAPE_TAGS:
                    continue
                if id(element) not in seen:
                    seen.add(id(element))
                    shapes.append(element)
        return shapes

    def set_flat_fill(self, name: str, color: str) -> int:
        """Paint every shape of a layer with one colour; returns shapes touched."""
        shapes = self.layer_shapes(name)
        for shape in shapes:
            force_fill(shape, color)
        logger.debug(f"Flat fill {color} on {len(shapes)} shapes of '{name}'")
        return len(shapes)

    def set_gradient_fill(self, name: str, colors: List[str],
                          orientation: str = "horizontal") -> str:
        """Fill a layer with an evenly spaced linear gradient.

        Returns:
            The id of the injected ``linearGradient``
        """
        if not colors:
            raise ValueError("Gradient needs at least one colour")
        if orientation not in GRADIENT_AXES:
            raise ValueError(
                f"Orientation must be one of {sorted(GRADIENT_AXES)}, got {orientation!r}"
            )

        self._gradient_counter += 1
        gradient_id = f"grad_{re.sub(r'[^A-Za-z0-9_-]', '_', name)}_{self._gradient_counter}"

        gradient = ET.SubElement(self._ensure_defs(), self._qualify("linearGradient"))
        gradient.set("id", gradient_id)
        for key, value in GRADIENT_AXES[orientation].items():
            gradient.set(key, value)

        count = len(colors)
        for i, color in enumerate(colors):
            offset = 0.0 if count == 1 else i / (count - 1) * 100
            stop = ET.SubElement(gradient, self._qualify("stop"))
            stop.set("offset", f"{offset:g}%")
            stop.set("stop-color", color)

        for shape in self.layer_shapes(name):
            force_fill(shape, f"url(#{gradient_id})")
        return gradient_id

    def set_soft_light(self, name: str, opacity: float = 0.8) -> int:
        """Blend a layer's roots with soft-light at ``opacity``."""
        roots = self._layers.get(name, [])
        for root in roots:
            set_style(root, "mix-blend-mode", "soft-light")
            set_style(root, "opacity", str(opacity))
        return len(roots)

    def _ensure_defs(self) -> ET.Element:
        defs = self.svg.find(f".//{self._qualify('defs')}")
        if defs is None:
            defs = ET.Element(self._qualify("defs"))
            self.svg.insert(0, defs)
        return defs

    def to_string(self) -> str:
        return ET.tostring(self.svg, encoding="unicode")

    def write(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        ET.ElementTree(self.svg).write(path, encoding="utf-8", xml_declaration=True)
        return path
