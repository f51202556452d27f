"""Genetic algorithms: populations, operators and genotype persistence."""

from .operators import UniformCrossover, GaussianMutator, as_genes
from .population import BasePopulation, Population, PopulationBuilder
from .manual import ManualPopulation
from .persistence import read_genotype, write_genotype, save_genotype, load_genotype
