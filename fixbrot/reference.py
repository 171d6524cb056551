"""Float64 reference render used to cross-check the fixed-point kernel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

from .renderer import RenderResult, SamplingMetadata

HORIZON = 4


@dataclass(frozen=True)
class ReferenceResult:
    iterations: np.ndarray
    escaped: np.ndarray


@tf.function
def _mandelbrot_step(zs: tf.Tensor, xs: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single iteration for points that have not escaped.

    The escaping step is counted, matching :meth:`fixbrot.point.Point.iterate`.
    """

    zs_new = zs * zs + xs
    zs = tf.where(active, zs_new, zs)
    ns = ns + tf.cast(active, tf.int32)
    magnitude = tf.math.real(zs) ** 2 + tf.math.imag(zs) ** 2
    horizon = tf.cast(HORIZON, magnitude.dtype)
    new_active = tf.logical_and(active, magnitude < horizon)
    return zs, ns, new_active


@tf.function
def _mandelbrot_run(xs: tf.Tensor, zs: tf.Tensor, ns: tf.Tensor, max_iterations: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate the Mandelbrot formula using a TensorFlow while loop."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    active = tf.ones_like(ns, tf.bool)

    def cond(i: tf.Tensor, zs: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tf.Tensor:
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i: tf.Tensor, zs: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
        zs, ns, active = _mandelbrot_step(zs, xs, ns, active)
        return i + 1, zs, ns, active

    return tf.while_loop(cond, body, (i, zs, ns, active))


def render_reference(metadata: SamplingMetadata, max_iterations: int, *, device: Optional[str] = None) -> ReferenceResult:
    """Iterate every sample of ``metadata`` in float64, starting from ``z = c``."""

    x = metadata.x_min + np.arange(metadata.x_res, dtype=np.float64) * np.float64(metadata.x_step)
    y = metadata.y_min + np.arange(metadata.y_res, dtype=np.float64) * np.float64(metadata.y_step)

    with tf.device(device if device is not None else "/CPU:0"):
        x_tf = tf.convert_to_tensor(x, dtype=tf.float64)
        y_tf = tf.convert_to_tensor(y, dtype=tf.float64)
        X, Y = tf.meshgrid(x_tf, y_tf)
        xs = tf.complex(X, Y)
        zs = tf.identity(xs)
        ns = tf.zeros(tf.shape(X), tf.int32)

        _, zs, ns, active = _mandelbrot_run(xs, zs, ns, tf.constant(max_iterations, dtype=tf.int32))

    return ReferenceResult(iterations=ns.numpy().astype(np.int64), escaped=~active.numpy())


def agreement(result: RenderResult, reference: ReferenceResult) -> float:
    """Fraction of cells whose escape flag and, when escaped, count both match."""

    same_flag = result.escaped == reference.escaped
    same_count = np.where(result.escaped, result.iterations == reference.iterations, True)
    return float(np.mean(same_flag & same_count))
