"""
Builds the ComfyUI node graph (UI workflow format) for one set of A1111
generation parameters.

A `WorkflowGraphBuilder` owns every counter used during a build (next node id,
next link id, layout cursor), so concurrent conversions must each create their
own builder.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from ...shared import get_logger
from . import node_types as nt
from .params import GenerationParameters

logger = get_logger(__name__)

NODE_SPACING_Y = 100


class GraphBuildError(RuntimeError):
    """Raised when a link refers to a node or slot that does not exist."""


@dataclass
class NodeInput:
    name: str
    type: str
    link: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "link": self.link}


@dataclass
class NodeOutput:
    name: str
    type: str
    slot_index: int
    links: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "slot_index": self.slot_index, "links": list(self.links)}


@dataclass
class GraphNode:
    id: int
    type: str
    pos: tuple[float, float]
    size: tuple[int, int]
    order: int
    inputs: list[NodeInput]
    outputs: list[NodeOutput]
    widgets_values: list[Any]
    mode: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "pos": list(self.pos),
            "size": list(self.size),
            "flags": {},
            "order": self.order,
            "mode": self.mode,
            "inputs": [slot.to_dict() for slot in self.inputs],
            "outputs": [slot.to_dict() for slot in self.outputs],
            "properties": {
                "cnr_id": nt.NODE_REGISTRY_ID,
                "ver": nt.NODE_REGISTRY_VERSION,
                "Node name for S&R": self.type,
            },
            "widgets_values": list(self.widgets_values),
        }


@dataclass(frozen=True)
class GraphLink:
    id: int
    source_id: int
    source_slot: int
    target_id: int
    target_slot: int
    type: str

    def to_list(self) -> list[Any]:
        return [self.id, self.source_id, self.source_slot, self.target_id, self.target_slot, self.type]


class WorkflowGraphBuilder:
    """
    Incrementally allocates nodes and links.

    Node ids start at `start_node_id` and link ids at 1; both only grow.
    A node's `order` is its id minus the starting offset.
    """

    def __init__(self, start_node_id: int = 1):
        if int(start_node_id) < 1:
            raise ValueError(f"start_node_id must be >= 1, got {start_node_id}")
        self.start_node_id = int(start_node_id)
        self.next_node_id = self.start_node_id
        self.next_link_id = 1
        self.nodes: list[GraphNode] = []
        self.links: list[GraphLink] = []
        self._by_id: dict[int, GraphNode] = {}
        self.cursor_x = 50.0
        self.cursor_y = 50.0

    # -- layout -----------------------------------------------------------

    def move_cursor(self, x: Optional[float] = None, y: Optional[float] = None) -> None:
        if x is not None:
            self.cursor_x = float(x)
        if y is not None:
            self.cursor_y = float(y)

    # -- primitives -------------------------------------------------------

    def create_node(
        self,
        node_type: str,
        widgets_values: Sequence[Any] = (),
        inputs: Optional[Sequence[tuple[str, str]]] = None,
        outputs: Optional[Sequence[tuple[str, str]]] = None,
        size: Optional[tuple[int, int]] = None,
    ) -> int:
        """Create a node at the layout cursor and return its id.

        Slots and size default to the node kind's entry in `NODE_KINDS`.
        """
        kind = nt.NODE_KINDS.get(node_type)
        if kind is None and (inputs is None or outputs is None):
            raise GraphBuildError(f"Unknown node type without explicit slots: {node_type}")
        in_slots = inputs if inputs is not None else kind.inputs  # type: ignore[union-attr]
        out_slots = outputs if outputs is not None else kind.outputs  # type: ignore[union-attr]
        node_size = size or (kind.size if kind else (315, 58))

        node_id = self.next_node_id
        node = GraphNode(
            id=node_id,
            type=node_type,
            pos=(self.cursor_x, self.cursor_y),
            size=(int(node_size[0]), int(node_size[1])),
            order=node_id - self.start_node_id,
            inputs=[NodeInput(name, slot_type) for name, slot_type in in_slots],
            outputs=[NodeOutput(name, slot_type, idx) for idx, (name, slot_type) in enumerate(out_slots)],
            widgets_values=list(widgets_values),
        )
        self.nodes.append(node)
        self._by_id[node_id] = node
        self.next_node_id += 1
        self.cursor_y += NODE_SPACING_Y
        return node_id

    def create_link(self, source_id: int, source_slot: int, target_id: int, target_slot: int, data_type: str) -> GraphLink:
        """Connect an output slot to an input slot and record the link on both nodes."""
        if data_type not in nt.DATA_TYPES:
            raise GraphBuildError(f"Unknown link type: {data_type}")
        source = self._by_id.get(source_id)
        target = self._by_id.get(target_id)
        if source is None or target is None:
            raise GraphBuildError(f"Link {source_id}->{target_id} references a missing node")
        if not 0 <= source_slot < len(source.outputs):
            raise GraphBuildError(f"Node {source_id} ({source.type}) has no output slot {source_slot}")
        if not 0 <= target_slot < len(target.inputs):
            raise GraphBuildError(f"Node {target_id} ({target.type}) has no input slot {target_slot}")

        out_slot = source.outputs[source_slot]
        in_slot = target.inputs[target_slot]
        if out_slot.type != data_type or in_slot.type != data_type:
            raise GraphBuildError(
                f"Type mismatch on link {source_id}:{source_slot} -> {target_id}:{target_slot} "
                f"({out_slot.type} -> {in_slot.type}, declared {data_type})"
            )

        link = GraphLink(self.next_link_id, source_id, source_slot, target_id, target_slot, data_type)
        self.next_link_id += 1
        self.links.append(link)
        out_slot.links.append(link.id)
        in_slot.link = link.id
        return link

    # -- topology ---------------------------------------------------------

    def build(self, params: GenerationParameters) -> tuple[list[GraphNode], list[GraphLink]]:
        """Emit the full txt2img graph (plus LoRA chain / hi-res pass when requested)."""
        self.move_cursor(50, 50)
        ckpt = self.create_node(nt.CHECKPOINT_LOADER, [params.model])

        model_src = clip_src = ckpt
        self.move_cursor(350, 50)
        for lora in params.loras:
            lora_id = self.create_node(nt.LORA_LOADER, [lora.path, lora.strength, lora.strength])
            self.create_link(model_src, 0, lora_id, 0, nt.MODEL)
            self.create_link(clip_src, 1, lora_id, 1, nt.CLIP)
            model_src = clip_src = lora_id

        self.move_cursor(650, 50)
        positive = self.create_node(nt.TEXT_ENCODE, [params.positive_prompt])
        self.create_link(clip_src, 1, positive, 0, nt.CLIP)

        self.move_cursor(y=self.cursor_y + 50)
        negative = self.create_node(nt.TEXT_ENCODE, [params.negative_prompt])
        self.create_link(clip_src, 1, negative, 0, nt.CLIP)

        self.move_cursor(50, 300)
        latent = self.create_node(nt.EMPTY_LATENT, [params.width, params.height, nt.LATENT_BATCH_SIZE])

        self.move_cursor(950, 50)
        sampler = self._create_sampler(
            model_src, positive, negative, latent,
            steps=params.steps, denoise=1.0, params=params,
        )
        final_latent = sampler

        if params.upscale is not None:
            up = params.upscale
            self.move_cursor(50, 450)
            up_loader = self.create_node(nt.UPSCALE_LOADER, [up.model])

            self.move_cursor(x=350)
            decoded = self.create_node(nt.VAE_DECODE)
            self.create_link(final_latent, 0, decoded, 0, nt.LATENT)
            self.create_link(ckpt, 2, decoded, 1, nt.VAE)

            upscaled = self.create_node(nt.UPSCALE_APPLY)
            self.create_link(up_loader, 0, upscaled, 0, nt.UPSCALE_MODEL)
            self.create_link(decoded, 0, upscaled, 1, nt.IMAGE)

            encoded = self.create_node(nt.VAE_ENCODE)
            self.create_link(upscaled, 0, encoded, 0, nt.IMAGE)
            self.create_link(ckpt, 2, encoded, 1, nt.VAE)

            final_latent = self._create_sampler(
                model_src, positive, negative, encoded,
                steps=up.steps, denoise=up.denoising, params=params,
            )

        self.move_cursor(1300, 50)
        final_decode = self.create_node(nt.VAE_DECODE)
        self.create_link(final_latent, 0, final_decode, 0, nt.LATENT)
        self.create_link(ckpt, 2, final_decode, 1, nt.VAE)

        save = self.create_node(nt.SAVE_IMAGE, [nt.FILENAME_PREFIX])
        self.create_link(final_decode, 0, save, 0, nt.IMAGE)

        logger.debug(
            "Built workflow graph: %d nodes, %d links (%d LoRA, hires=%s)",
            len(self.nodes), len(self.links), len(params.loras), params.upscale is not None,
        )
        return self.nodes, self.links

    def _create_sampler(
        self,
        model_src: int,
        positive: int,
        negative: int,
        latent_src: int,
        *,
        steps: int,
        denoise: float,
        params: GenerationParameters,
    ) -> int:
        sampler = self.create_node(
            nt.SAMPLER,
            [params.seed, nt.SEED_CONTROL, steps, params.cfg, params.sampler, nt.SCHEDULER, denoise],
        )
        self.create_link(model_src, 0, sampler, 0, nt.MODEL)
        self.create_link(positive, 0, sampler, 1, nt.CONDITIONING)
        self.create_link(negative, 0, sampler, 2, nt.CONDITIONING)
        self.create_link(latent_src, 0, sampler, 3, nt.LATENT)
        return sampler
