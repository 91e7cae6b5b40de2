"""
Node kinds emitted by the A1111 -> ComfyUI converter.

Every node shares the same envelope (id, pos, size, flags, order, mode,
inputs, outputs, properties, widgets_values); what differs per kind is kept
in `NODE_KINDS`: the slot layout, the default canvas size and the meaning of
each `widgets_values` entry.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# Typed link channels
MODEL: Final[str] = "MODEL"
CLIP: Final[str] = "CLIP"
VAE: Final[str] = "VAE"
CONDITIONING: Final[str] = "CONDITIONING"
LATENT: Final[str] = "LATENT"
IMAGE: Final[str] = "IMAGE"
UPSCALE_MODEL: Final[str] = "UPSCALE_MODEL"

DATA_TYPES: Final[frozenset[str]] = frozenset({MODEL, CLIP, VAE, CONDITIONING, LATENT, IMAGE, UPSCALE_MODEL})

CHECKPOINT_LOADER: Final[str] = "CheckpointLoaderSimple"
LORA_LOADER: Final[str] = "LoraLoader"
TEXT_ENCODE: Final[str] = "CLIPTextEncode"
EMPTY_LATENT: Final[str] = "EmptyLatentImage"
SAMPLER: Final[str] = "KSampler"
UPSCALE_LOADER: Final[str] = "UpscaleModelLoader"
VAE_DECODE: Final[str] = "VAEDecode"
UPSCALE_APPLY: Final[str] = "ImageUpscaleWithModel"
VAE_ENCODE: Final[str] = "VAEEncode"
SAVE_IMAGE: Final[str] = "SaveImage"

# Node registry identifiers written into every node's `properties`
NODE_REGISTRY_ID: Final[str] = "comfy-core"
NODE_REGISTRY_VERSION: Final[str] = "0.3.43"

SEED_CONTROL: Final[str] = "randomize"
SCHEDULER: Final[str] = "normal"
FILENAME_PREFIX: Final[str] = "ComfyUI"
LATENT_BATCH_SIZE: Final[int] = 1


@dataclass(frozen=True)
class NodeKind:
    type: str
    inputs: tuple[tuple[str, str], ...]
    outputs: tuple[tuple[str, str], ...]
    size: tuple[int, int]
    widgets: tuple[str, ...]


NODE_KINDS: Final[dict[str, NodeKind]] = {
    kind.type: kind
    for kind in (
        NodeKind(
            CHECKPOINT_LOADER,
            inputs=(),
            outputs=((MODEL, MODEL), (CLIP, CLIP), (VAE, VAE)),
            size=(350, 98),
            widgets=("ckpt_name",),
        ),
        NodeKind(
            LORA_LOADER,
            inputs=(("model", MODEL), ("clip", CLIP)),
            outputs=((MODEL, MODEL), (CLIP, CLIP)),
            size=(315, 126),
            widgets=("lora_name", "strength_model", "strength_clip"),
        ),
        NodeKind(
            TEXT_ENCODE,
            inputs=(("clip", CLIP),),
            outputs=((CONDITIONING, CONDITIONING),),
            size=(422, 164),
            widgets=("text",),
        ),
        NodeKind(
            EMPTY_LATENT,
            inputs=(),
            outputs=((LATENT, LATENT),),
            size=(315, 106),
            widgets=("width", "height", "batch_size"),
        ),
        NodeKind(
            SAMPLER,
            inputs=(("model", MODEL), ("positive", CONDITIONING), ("negative", CONDITIONING), ("latent_image", LATENT)),
            outputs=((LATENT, LATENT),),
            size=(315, 262),
            widgets=("seed", "control_after_generate", "steps", "cfg", "sampler_name", "scheduler", "denoise"),
        ),
        NodeKind(
            UPSCALE_LOADER,
            inputs=(),
            outputs=((UPSCALE_MODEL, UPSCALE_MODEL),),
            size=(315, 58),
            widgets=("model_name",),
        ),
        NodeKind(
            VAE_DECODE,
            inputs=(("samples", LATENT), ("vae", VAE)),
            outputs=((IMAGE, IMAGE),),
            size=(210, 46),
            widgets=(),
        ),
        NodeKind(
            UPSCALE_APPLY,
            inputs=(("upscale_model", UPSCALE_MODEL), ("image", IMAGE)),
            outputs=((IMAGE, IMAGE),),
            size=(315, 126),
            widgets=(),
        ),
        NodeKind(
            VAE_ENCODE,
            inputs=(("pixels", IMAGE), ("vae", VAE)),
            outputs=((LATENT, LATENT),),
            size=(210, 46),
            widgets=(),
        ),
        NodeKind(
            SAVE_IMAGE,
            inputs=(("images", IMAGE),),
            outputs=(),
            size=(315, 58),
            widgets=("filename_prefix",),
        ),
    )
}
