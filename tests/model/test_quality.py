#!/usr/bin/env python3

import unittest

from genalyzer.codons.tables import universal_table
from genalyzer.model import Dataset, GeneEntry, GeneRegion, StrainEntry
from genalyzer.model.quality import QualityChecker, QualityLevel
from genalyzer.model.region import EXON, INTRON


def make_strain(sequence, name="K12", populations=("PopA",)):
    strain = StrainEntry("E. coli", name, "chr1")
    strain.add_region(GeneRegion(EXON, sequence, 1, len(sequence)))
    strain.add_populations(*populations)
    return strain


class TestStrainQuality(unittest.TestCase):
    """Test quality levels assigned to single strains."""

    def setUp(self):
        self.checker = QualityChecker(universal_table())

    def test_clean_strain(self):
        strain = make_strain("ATGAAATAA")
        self.assertEqual(self.checker.validate_strain(strain), QualityLevel.OK)
        self.assertEqual(strain.annotations.quality_level, 0)
        self.assertEqual(strain.annotations.quality_description, "")

    def test_premature_terminal_codon(self):
        strain = make_strain("ATGTAAAAATAA")
        self.assertEqual(
            self.checker.validate_strain(strain), QualityLevel.PREMATURE_TERMINAL
        )
        self.assertIn("premature terminal codon", strain.annotations.quality_description)

    def test_missing_start_and_stop_are_minor(self):
        strain = make_strain("AAAAAA")
        self.assertEqual(self.checker.validate_strain(strain), QualityLevel.MINOR)
        description = strain.annotations.quality_description
        self.assertIn("Stop codon missing", description)
        self.assertIn("Start codon missing", description)

    def test_missing_population_is_severe(self):
        strain = make_strain("ATGAAATAA", populations=())
        self.assertEqual(self.checker.validate_strain(strain), QualityLevel.SEVERE)

    def test_no_regions_is_fatal(self):
        strain = StrainEntry("E. coli", "K12", "chr1")
        strain.add_populations("PopA")
        self.assertEqual(self.checker.validate_strain(strain), QualityLevel.FATAL)

    def test_overlapping_regions(self):
        strain = make_strain("ATGAAATAA")
        strain.add_region(GeneRegion(INTRON, "CCC", 8, 10))
        self.assertEqual(self.checker.validate_strain(strain), QualityLevel.SEVERE)
        self.assertIn("Overlap", strain.annotations.quality_description)

    def test_invalid_characters_are_fatal(self):
        region = GeneRegion(EXON, "ATGQ", 1, 4)
        self.assertEqual(self.checker.validate_region(region), QualityLevel.FATAL)


class TestGeneQuality(unittest.TestCase):
    """Test gene-level checks and dataset ordering by quality."""

    def setUp(self):
        self.checker = QualityChecker(universal_table())

    def test_gene_without_strains_is_fatal(self):
        gene = GeneEntry("lacZ")
        self.assertEqual(self.checker.validate_gene(gene), QualityLevel.FATAL)

    def test_gene_takes_worst_strain_level(self):
        gene = GeneEntry("lacZ")
        gene.add_strain(make_strain("ATGAAATAA", name="A"))
        gene.add_strain(make_strain("ATGTAAAAA", name="B"))
        self.assertEqual(
            self.checker.validate_gene(gene), QualityLevel.PREMATURE_TERMINAL
        )

    def test_different_region_layouts_are_fatal(self):
        gene = GeneEntry("lacZ")
        gene.add_strain(make_strain("ATGAAATAA", name="A"))
        gene.add_strain(make_strain("ATGAAAAAATAA", name="B"))
        self.assertEqual(self.checker.validate_gene(gene), QualityLevel.FATAL)

    def test_validate_dataset_then_sort(self):
        dataset = Dataset()
        bad = GeneEntry("bad")
        bad.add_strain(make_strain("ATGTAAAAATAA"))
        good = GeneEntry("good")
        good.add_strain(make_strain("ATGAAATAA"))
        dataset.add_gene(bad)
        dataset.add_gene(good)

        self.checker.validate_dataset(dataset)
        dataset.sort_by_quality()
        self.assertEqual([g.common_name for g in dataset], ["good", "bad"])


if __name__ == "__main__":
    unittest.main()
