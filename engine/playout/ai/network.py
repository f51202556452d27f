"""
Feed-forward network used as a move evaluator.

The network is never trained by gradient descent: its weights come from a
genetic population, so the interesting API is get_weights()/set_weights()
on a flat vector. Parameter order is weight then bias for every layer, the
same order torch.nn.utils.parameters_to_vector uses.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import math

import numpy as np
import torch
import torch.nn as nn
from torch.nn.utils import parameters_to_vector, vector_to_parameters

ACTIVATIONS = {
    'tanh': torch.tanh,
    'sigmoid': torch.sigmoid,
    'relu': torch.relu,
}


@dataclass
class PerceptronConfig:
    """Configuration for the network."""
    layer_sizes: tuple[int, ...] = (9, 18, 1)  # Input size first, output size last
    activation: str = 'tanh'  # Applied after every layer

    def __post_init__(self):
        self.layer_sizes = tuple(self.layer_sizes)
        if len(self.layer_sizes) < 2:
            raise ValueError("A network needs at least an input and an output layer")
        if any(size <= 0 for size in self.layer_sizes):
            raise ValueError(f"Layer sizes must be positive: {self.layer_sizes}")
        if self.activation not in ACTIVATIONS:
            raise ValueError(f"Unknown activation: {self.activation}")


class Perceptron(nn.Module):
    """Fully connected feed-forward network with a fixed topology."""

    def __init__(self, config: Optional[PerceptronConfig] = None):
        super().__init__()
        self.config = config or PerceptronConfig()
        sizes = self.config.layer_sizes

        self.layers = nn.ModuleList([
            nn.Linear(n_in, n_out) for n_in, n_out in zip(sizes[:-1], sizes[1:])
        ])
        self._activation = ACTIVATIONS[self.config.activation]

    @property
    def input_size(self) -> int:
        return self.config.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.config.layer_sizes[-1]

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        for layer in self.layers:
            x = self._activation(layer(x))
        return x

    def compute(self, inputs: np.ndarray) -> np.ndarray:
        """
        Inference on a single input vector (no gradients).

        Args:
            inputs: Array of shape (input_size,)

        Returns:
            Array of shape (output_size,)
        """
        inputs = np.asarray(inputs, dtype=np.float32)
        if inputs.shape != (self.input_size,):
            raise ValueError(f"Expected input of shape ({self.input_size},), got {inputs.shape}")

        with torch.no_grad():
            output = self.forward(torch.from_numpy(inputs))
        return output.numpy()

    def get_weights(self) -> np.ndarray:
        """All parameters as one flat float32 vector."""
        return parameters_to_vector(self.parameters()).detach().cpu().numpy()

    def set_weights(self, weights: np.ndarray) -> None:
        """Load a flat vector produced by get_weights() (or random_weights())."""
        weights = np.asarray(weights, dtype=np.float32)
        if weights.shape != (self.num_parameters(),):
            raise ValueError(
                f"Expected {self.num_parameters()} weights, got shape {weights.shape}"
            )
        with torch.no_grad():
            vector_to_parameters(torch.from_numpy(weights.copy()), self.parameters())

    def num_parameters(self) -> int:
        """Count total parameters."""
        return sum(p.numel() for p in self.parameters())

    @staticmethod
    def random_weights(config: PerceptronConfig, rng: np.random.Generator) -> np.ndarray:
        """
        Draw a flat weight vector with the same uniform fan-in scaling as nn.Linear.

        Uses the given generator so populations are reproducible under a seed.
        """
        chunks = []
        sizes = config.layer_sizes
        for n_in, n_out in zip(sizes[:-1], sizes[1:]):
            bound = 1.0 / math.sqrt(n_in)
            chunks.append(rng.uniform(-bound, bound, size=n_out * n_in))  # weight
            chunks.append(rng.uniform(-bound, bound, size=n_out))  # bias
        return np.concatenate(chunks).astype(np.float32)

    def save(self, path: str) -> None:
        """Save model weights."""
        torch.save({
            'config': self.config,
            'state_dict': self.state_dict()
        }, path)

    @classmethod
    def load(cls, path: str, device: str = 'cpu') -> Perceptron:
        """Load model from file."""
        # Our own checkpoints contain the PerceptronConfig dataclass
        checkpoint = torch.load(path, map_location=device, weights_only=False)
        model = cls(checkpoint['config'])
        model.load_state_dict(checkpoint['state_dict'])
        return model


def create_network(*layer_sizes: int, activation: str = 'tanh') -> Perceptron:
    """Create a new network with the given layer sizes."""
    return Perceptron(PerceptronConfig(layer_sizes=layer_sizes, activation=activation))
