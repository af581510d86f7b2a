#!/usr/bin/env python3

import unittest

import pandas as pd

from genalyzer.analysis.daf import (
    COLUMNS,
    DerivedAllele,
    daf_analysis,
    find_derived_alleles,
    frequency_spectrum,
    gene_derived_alleles,
)
from genalyzer.codons.tables import universal_table
from genalyzer.config import AnalysisOptions
from genalyzer.model import Dataset, GeneEntry, GeneRegion, StrainEntry
from genalyzer.model.region import EXON
from genalyzer.statistics.composition import SiteComposition

POP = ["ACGTA", "ACGTA", "ACGTA", "GCGTA"]
OUT = ["ACGTT", "ACGTT"]


def build_dataset(pop, out):
    dataset = Dataset()
    gene = GeneEntry("g1")
    for population, sequences in (("PopA", pop), ("PopB", out)):
        for i, sequence in enumerate(sequences):
            strain = StrainEntry("sp", f"{population}_{i}", "chr1")
            strain.add_region(GeneRegion(EXON, sequence, 1, len(sequence)))
            strain.add_populations(population)
            gene.add_strain(strain)
    dataset.add_gene(gene)
    return dataset


class TestFindDerivedAlleles(unittest.TestCase):
    """Test ancestral base inference at one site."""

    def test_single_derived_allele(self):
        alleles = find_derived_alleles(SiteComposition("AAAG"), SiteComposition("AA"))
        self.assertEqual(alleles, [DerivedAllele("A", "G", 1)])

    def test_ancestral_is_most_frequent_outgroup_base(self):
        alleles = find_derived_alleles(
            SiteComposition("AGGGC"), SiteComposition("AG")
        )
        self.assertEqual(
            alleles, [DerivedAllele("G", "A", 1), DerivedAllele("G", "C", 1)]
        )

    def test_no_assignment(self):
        self.assertIsNone(
            find_derived_alleles(SiteComposition("AAAA"), SiteComposition("A"))
        )
        self.assertIsNone(
            find_derived_alleles(SiteComposition("AAAG"), SiteComposition("TT"))
        )


class TestGeneDerivedAlleles(unittest.TestCase):
    """Test per-gene derived allele records."""

    def setUp(self):
        self.table = universal_table()

    def test_records(self):
        options = AnalysisOptions(population="PopA", outgroup="PopB")
        n_sites, records = gene_derived_alleles(POP, OUT, options, self.table)
        self.assertEqual(n_sites, 5)
        self.assertEqual(records, [(1, "A", "G", 1, 0.25)])

    def test_constant_size_frequency(self):
        pop = ["A", "A", "G", "N"]
        options = AnalysisOptions(constant_size=True)
        _, records = gene_derived_alleles(pop, ["A"], options, self.table)
        self.assertEqual(records, [(1, "A", "G", 1, 0.25)])
        options = AnalysisOptions(constant_size=False)
        _, records = gene_derived_alleles(pop, ["A"], options, self.table)
        self.assertEqual(records, [(1, "A", "G", 1, 0.25)])
        _, records = gene_derived_alleles(["A", "A", "G", "-"], ["A"], options, self.table)
        self.assertEqual(records, [])

    def test_ffd_positions_are_third_codon_positions(self):
        options = AnalysisOptions(ffd=True)
        n_sites, records = gene_derived_alleles(
            ["AAAGCA", "AAAGCA", "AAAGCG"], ["AAAGCA"], options, self.table
        )
        self.assertEqual(n_sites, 1)
        self.assertEqual(records, [(6, "A", "G", 1, 1 / 3)])


class TestDafAnalysis(unittest.TestCase):
    """Test the dataset-wide derived allele table and its spectrum."""

    def test_analysis_frame(self):
        dataset = build_dataset(POP, OUT)
        options = AnalysisOptions(population="PopA", outgroup="PopB")
        frame = daf_analysis(dataset, options)
        self.assertEqual(list(frame.columns), COLUMNS)
        self.assertEqual(len(frame), 1)
        self.assertEqual(frame.loc[0, "derived"], "G")
        self.assertAlmostEqual(frame.loc[0, "frequency"], 0.25)
        self.assertEqual(frame.attrs["sites"], {"g1": 5})

    def test_outgroup_is_required(self):
        dataset = build_dataset(POP, OUT)
        with self.assertRaises(ValueError):
            daf_analysis(dataset, AnalysisOptions(population="PopA"))

    def test_frequency_spectrum(self):
        frame = pd.DataFrame({"frequency": [0.25, 0.25, 0.95]})
        spectrum = frequency_spectrum(frame, bins=10)
        self.assertEqual(list(spectrum.columns), ["lower", "upper", "count"])
        self.assertEqual(len(spectrum), 10)
        self.assertEqual(spectrum["count"].sum(), 3)
        self.assertEqual(spectrum.loc[2, "count"], 2)
        self.assertEqual(spectrum.loc[9, "count"], 1)


if __name__ == "__main__":
    unittest.main()
