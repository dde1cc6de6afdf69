"""Channel decomposition: split one document revision into stably keyed components

Extraction runs in a fixed order (channel scripts, source connector,
destination connectors, residual). Every extracted element is recorded as
consumed; later steps and the residual serialize pruned copies that skip
consumed elements, so each node of the document lands in exactly one
component and the parsed tree itself is never modified.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType

from lxml import etree

from chandiff.core.models import (
    Category, Component, ComponentPath, DecompositionResult, Granularity,
)
from chandiff.core.parse import (
    child_element, child_text, element_children, local_name, parse_document,
    serialize_pruned, serialize_residual, text_content,
)


logger = logging.getLogger(__name__)

CHANNEL_TAG = "channel"

CHANNEL_SCRIPTS: tuple[tuple[str, str], ...] = (
    ("preprocessingScript",  "Preprocessing Script"),
    ("postprocessingScript", "Postprocessing Script"),
    ("deployScript",         "Deploy Script"),
    ("undeployScript",       "Undeploy Script"),
)

# (element tag, display label, category)
SOURCE_PIPELINES: tuple[tuple[str, str, Category], ...] = (
    ("filter",      "Filter",      Category.filter),
    ("transformer", "Transformer", Category.transformer),
)
DESTINATION_PIPELINES = SOURCE_PIPELINES + (
    ("responseTransformer", "Response Transformer", Category.response_transformer),
)

CHANNEL_SCRIPTS_GROUP = ComponentPath.of("Channel Scripts")
SOURCE_GROUP = ComponentPath.of("Source Connector")
CHANNEL_PROPERTIES = ComponentPath.of("Channel Properties")
DESTINATION_ORDER = ComponentPath.of("Destination Order")


def step_type_name(tag: str) -> str:
    """Final segment of a dotted type name ('a.b.MapperStep' -> 'MapperStep'); others unchanged."""
    last_dot = tag.rfind(".")
    if 0 <= last_dot < len(tag) - 1:
        return tag[last_dot + 1:]
    return tag


@dataclass
class _Extraction:
    """Per-call accumulator; never outlives a single decompose() call."""
    components: dict[ComponentPath, Component] = field(default_factory=dict)
    group_names: dict[ComponentPath, str] = field(default_factory=dict)
    consumed: set = field(default_factory=set)

    def add(self, key: ComponentPath, display_name: str, content: str, category: Category) -> None:
        self.components[key] = Component(
            key=key,
            display_name=display_name,
            content=content,
            category=category,
            parent_group=key.parent,
        )

    def consume(self, node: etree._Element) -> None:
        self.consumed.add(node)


def _extract_channel_scripts(root: etree._Element, ex: _Extraction) -> None:
    for tag, label in CHANNEL_SCRIPTS:
        node = child_element(root, tag)
        if node is None:
            continue
        ex.add(CHANNEL_SCRIPTS_GROUP.child(label), label, text_content(node), Category.channel_script)
        ex.consume(node)


def _extract_plugins(plugins: etree._Element, group: ComponentPath, ex: _Extraction) -> None:
    """One component per plugin block, keyed by the final segment of its tag."""
    for position, plugin in enumerate(element_children(plugins), start=1):
        tag = local_name(plugin)
        name = step_type_name(tag)
        key = group.child(f"Plugin: {name}")
        if key in ex.components:
            logger.warning("Plugin name %r repeats under %s; keying by full tag %r", name, group, tag)
            name = tag
            key = group.child(f"Plugin: {name}")
        if key in ex.components:
            name = f"{tag} #{position}"
            key = group.child(f"Plugin: {name}")
        ex.add(key, f"Plugin: {name}", serialize_pruned(plugin, ex.consumed), Category.connector_plugin)
        ex.consume(plugin)


def _extract_steps(pipeline: etree._Element, group: ComponentPath, category: Category, ex: _Extraction) -> None:
    """One component per step in <elements>, keyed by slot index; the pipeline shell stays behind."""
    elements = child_element(pipeline, "elements")
    if elements is None:
        return
    for index, step in enumerate(element_children(elements)):
        seq = child_text(step, "sequenceNumber")
        seq = seq.strip() if seq and seq.strip() else str(index)
        name = child_text(step, "name")
        if not name:
            name = step_type_name(local_name(step))
        ex.add(group.child(f"Step {index}"), f"Step {seq}: {name}", serialize_pruned(step, ex.consumed), category)
        ex.consume(step)


def _extract_connector(
    connector: etree._Element,
    group: ComponentPath,
    pipelines: tuple[tuple[str, str, Category], ...],
    granularity: Granularity,
    ex: _Extraction,
    ) -> None:
    """Extract script, plugins and pipelines of a connector, then its remaining Configuration."""
    properties = child_element(connector, "properties")
    if properties is not None:
        script = child_element(properties, "script")
        if script is not None:
            ex.add(group.child("Script"), "Script", text_content(script), Category.connector_script)
            ex.consume(script)
        plugins = child_element(properties, "pluginProperties")
        if plugins is not None:
            _extract_plugins(plugins, group, ex)

    for tag, label, category in pipelines:
        pipeline = child_element(connector, tag)
        if pipeline is None:
            continue
        if granularity is Granularity.block:
            ex.add(group.child(label), label, serialize_pruned(pipeline, ex.consumed), category)
            ex.consume(pipeline)
        else:
            _extract_steps(pipeline, group.child(label), category, ex)

    ex.add(
        group.child("Configuration"), "Configuration",
        serialize_pruned(connector, ex.consumed), Category.connector_configuration,
    )
    ex.consume(connector)


def _extract_destinations(root: etree._Element, granularity: Granularity, ex: _Extraction) -> list[str]:
    """Extract every destination connector keyed by metaDataId. Returns Destination Order lines."""
    wrapper = child_element(root, "destinationConnectors")
    if wrapper is None:
        return []

    order: list[str] = []
    used: set[str] = set()
    connectors = [c for c in element_children(wrapper) if local_name(c) == "connector"]
    for position, connector in enumerate(connectors, start=1):
        name = child_text(connector, "name") or ""
        ident = (child_text(connector, "metaDataId") or "").strip()
        if not ident:
            logger.warning("Destination %d (%r) has no metaDataId; keying by position", position, name)
            ident = f"#{position}"
        segment = f"Destination [{ident}]"
        if segment in used:
            logger.warning("Duplicate metaDataId %s; keying destination %d by position", ident, position)
            segment = f"{segment} #{position}"
        used.add(segment)

        group = ComponentPath.of(segment)
        ex.group_names[group] = f"Destination: {name} [{ident}]"
        order.append(f"{position}. {name} [{ident}]")
        _extract_connector(connector, group, DESTINATION_PIPELINES, granularity, ex)

    # Drop the wrapper only once nothing but extracted connectors is left in it;
    # text between or after connectors keeps it in the residual
    leftovers = [c for c in wrapper if c not in ex.consumed or (c.tail or "").strip()]
    if not leftovers and not (wrapper.text or "").strip():
        ex.consume(wrapper)
    return order


def decompose(text: str, granularity: Granularity = Granularity.step) -> DecompositionResult:
    """Decompose one channel revision into an ordered, stably keyed component map.

    Raises ParseError when text is not well-formed XML. Well-formed documents of
    unexpected shape never fail: anything no rule claims stays in the enclosing
    component or in Channel Properties.
    """
    root = parse_document(text)
    ex = _Extraction()
    order: list[str] = []

    if local_name(root) == CHANNEL_TAG:
        _extract_channel_scripts(root, ex)
        source = child_element(root, "sourceConnector")
        if source is not None:
            _extract_connector(source, SOURCE_GROUP, SOURCE_PIPELINES, granularity, ex)
        order = _extract_destinations(root, granularity, ex)
    else:
        logger.warning("Root element <%s> is not <%s>; nothing extracted", local_name(root), CHANNEL_TAG)

    leading = _Extraction()
    leading.add(CHANNEL_PROPERTIES, "Channel Properties",
                serialize_residual(root, ex.consumed), Category.channel_properties)
    if order:
        leading.add(DESTINATION_ORDER, "Destination Order", "\n".join(order), Category.channel_properties)

    components = {**leading.components, **ex.components}
    logger.debug("Decomposed document into %d components (%d destinations, granularity=%s)",
                 len(components), len(order), granularity.value)
    return DecompositionResult(
        components=MappingProxyType(components),
        group_names=MappingProxyType(dict(ex.group_names)),
    )
