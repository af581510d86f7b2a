#!/usr/bin/env python3

import unittest

import numpy as np

from genalyzer.analysis.synnonsyn import (
    COLUMNS,
    count_fixed_substitutions,
    gene_synnonsyn,
    synnonsyn_analysis,
)
from genalyzer.codons.tables import universal_table
from genalyzer.config import AnalysisOptions
from genalyzer.model import Dataset, GeneEntry, GeneRegion, StrainEntry
from genalyzer.model.region import EXON
from genalyzer.statistics.codon_composition import CodonComposition

POP = ["AAAAAA", "AAAAAA", "AAAAAA", "AAGAAA"]
OUT = ["AAAGAA", "AAAGAA"]


def composition(*codons):
    result = CodonComposition(universal_table())
    for codon in codons:
        result.add_codon(codon)
    return result


class TestFixedSubstitutions(unittest.TestCase):
    """Test the classification of fixed differences."""

    def test_nonsynonymous_transition(self):
        result = count_fixed_substitutions(
            composition("AAA", "AAA"), composition("GAA")
        )
        self.assertEqual(result, (0, 0, 0, 1, 1, 0))

    def test_synonymous_transition(self):
        result = count_fixed_substitutions(
            composition("CTA", "CTA"), composition("CTG")
        )
        self.assertEqual(result, (1, 1, 0, 0, 0, 0))

    def test_shared_bases_are_not_fixed(self):
        result = count_fixed_substitutions(
            composition("AAA", "GAA"), composition("GAA")
        )
        self.assertEqual(result, (0, 0, 0, 0, 0, 0))


class TestGeneSynnonsyn(unittest.TestCase):
    """Test the statistics of a single coding gene."""

    def setUp(self):
        self.table = universal_table()

    def row(self, pop, out, **options):
        values = gene_synnonsyn(pop, out, AnalysisOptions(**options), self.table)
        return dict(zip(COLUMNS[1:], values))

    def test_polymorphism_and_divergence(self):
        row = self.row(POP, OUT)
        self.assertEqual(row["strains"], 4)
        self.assertEqual(row["pop_polymorphisms_syn"], 1)
        self.assertEqual(row["pop_polymorphisms_nonsyn"], 0)
        self.assertEqual(row["pop_singletons_syn"], 1)
        self.assertEqual(row["pop_transitions_syn"], 1)
        self.assertGreater(row["pop_pi_syn"], 0.0)
        self.assertEqual(row["pop_pi_nonsyn"], 0.0)
        self.assertEqual(row["paired_polymorphisms_syn"], 1)
        self.assertEqual(row["div_fixed_nonsyn"], 1)
        self.assertEqual(row["div_fixed_transitions_nonsyn"], 1)
        self.assertEqual(row["div_fixed_syn"], 0)
        self.assertGreater(row["div_k_nonsyn"], 0.0)
        self.assertEqual(row["Ps"], 1)
        self.assertEqual(row["Pn"], 0)
        self.assertEqual(row["Ds"], 0)
        self.assertEqual(row["Dn"], 1)

    def test_without_outgroup(self):
        row = self.row(POP, [])
        self.assertEqual(row["pop_polymorphisms_syn"], 1)
        self.assertEqual(row["paired_sites_syn"], 0.0)
        self.assertTrue(np.isnan(row["div_k_syn"]))
        self.assertEqual(row["Dn"], 0)

    def test_gapped_codons_are_skipped(self):
        row = self.row(["AAA---", "AAG---"], [])
        self.assertEqual(row["pop_polymorphisms_syn"], 1)
        self.assertAlmostEqual(row["pop_sites_syn"], 1 / 3)

    def test_single_valid_codon_is_not_a_site(self):
        row = self.row(["AAAAAG", "NNNAAA"], [])
        self.assertEqual(row["pop_polymorphisms_syn"], 1)
        self.assertAlmostEqual(row["pop_sites_syn"], 1 / 3)
        self.assertAlmostEqual(row["pop_sites_nonsyn"], 8 / 3)

    def test_too_short(self):
        self.assertIsNone(
            gene_synnonsyn(["AA", "AA"], [], AnalysisOptions(), self.table)
        )


class TestSynnonsynAnalysis(unittest.TestCase):
    """Test the dataset-wide syn/nonsyn table."""

    def test_analysis_frame(self):
        dataset = Dataset()
        gene = GeneEntry("g1")
        for population, sequences in (("PopA", POP), ("PopB", OUT)):
            for i, sequence in enumerate(sequences):
                strain = StrainEntry("sp", f"{population}_{i}", "chr1")
                strain.add_region(GeneRegion(EXON, sequence, 1, len(sequence)))
                strain.add_populations(population)
                gene.add_strain(strain)
        dataset.add_gene(gene)

        options = AnalysisOptions(population="PopA", outgroup="PopB")
        frame = synnonsyn_analysis(dataset, options)
        self.assertEqual(list(frame.columns), COLUMNS)
        self.assertEqual(len(frame), 1)
        self.assertEqual(frame.loc[0, "Dn"], 1)
        self.assertEqual(frame.loc[0, "Ps"], 1)


if __name__ == "__main__":
    unittest.main()
