#!/usr/bin/env python3

import unittest

import numpy as np

from genalyzer.codons.tables import universal_table
from genalyzer.statistics.basic import jukes_cantor
from genalyzer.statistics.blocks import (
    CodonsBlock,
    SitesBlock,
    make_codons_blocks,
    make_sites_blocks,
)
from genalyzer.statistics.codon_composition import CodonComposition
from genalyzer.statistics.composition import SiteComposition


class TestSitesBlock(unittest.TestCase):
    """Test single-site strata."""

    def test_add_site(self):
        block = SitesBlock(3)
        self.assertTrue(block.add_site(SiteComposition("AAG")))
        self.assertTrue(block.add_site(SiteComposition("CCC")))
        self.assertEqual(block.sites_count, 2)
        self.assertEqual(block.polymorphisms_count, 1)
        self.assertEqual(block.singletons_count, 1)
        self.assertEqual(block.transitions_count, 1.0)
        self.assertAlmostEqual(block.pi, (4 / 6) / 2)
        self.assertAlmostEqual(block.theta, 0.5 / 1.5)

    def test_rejects_other_sample_sizes(self):
        block = SitesBlock(3)
        self.assertFalse(block.add_site(SiteComposition("AG-")))
        self.assertFalse(block.add_site(SiteComposition("AGNN")))
        self.assertEqual(block.sites_count, 0)
        self.assertEqual(block.pi, 0.0)
        self.assertEqual(block.theta, 0.0)

    def test_jukes_cantor_flags(self):
        block = SitesBlock(3, jc_pi=True, jc_theta=True)
        block.add_site(SiteComposition("AAG"))
        block.add_site(SiteComposition("CCC"))
        self.assertAlmostEqual(block.pi, jukes_cantor((4 / 6) / 2))
        self.assertAlmostEqual(block.theta, jukes_cantor(0.5 / 1.5))

    def test_make_sites_blocks(self):
        blocks = make_sites_blocks(4)
        self.assertEqual([b.strains_count for b in blocks], [1, 2, 3, 4])

    def test_aggregates(self):
        blocks = make_sites_blocks(4)
        blocks[3].add_site(SiteComposition("AAAG"))
        blocks[3].add_site(SiteComposition("AAAA"))
        blocks[1].add_site(SiteComposition("CT"))
        self.assertEqual(SitesBlock.total_sites(blocks), 3.0)
        self.assertEqual(SitesBlock.total_polymorphisms(blocks), 2)
        self.assertEqual(SitesBlock.total_singletons(blocks), 3)
        self.assertEqual(SitesBlock.total_transitions(blocks), 2.0)
        self.assertAlmostEqual(SitesBlock.aggregate_pi(blocks), (0.5 + 1.0) / 3)
        theta_4 = 0.5 / (11 / 6)
        theta_2 = 1.0
        self.assertAlmostEqual(
            SitesBlock.aggregate_theta(blocks), (theta_4 * 2 + theta_2 * 1) / 3
        )
        self.assertEqual(SitesBlock.aggregate_pi([]), 0.0)
        self.assertEqual(SitesBlock.aggregate_theta([]), 0.0)


class TestCodonsBlock(unittest.TestCase):
    """Test codon strata."""

    def setUp(self):
        self.table = universal_table()

    def composition(self, *codons):
        cc = CodonComposition(self.table)
        for codon in codons:
            cc.add_codon(codon)
        return cc

    def test_add_codon(self):
        block = CodonsBlock(2, self.table)
        self.assertTrue(block.add_codon(self.composition("AAA", "AAG")))
        self.assertFalse(block.add_codon(self.composition("AAA")))
        syn, nonsyn = block.sites_count
        self.assertAlmostEqual(syn, 1 / 3)
        self.assertAlmostEqual(nonsyn, 8 / 3)
        self.assertEqual(block.polymorphisms_count, (1, 0))
        self.assertEqual(block.singletons_count, (2, 0))
        self.assertEqual(block.transitions_count, (1, 0))
        self.assertEqual(block.transversions_count, (0, 0))
        pi_syn, pi_non = block.pi
        self.assertAlmostEqual(pi_syn, 3.0)
        self.assertEqual(pi_non, 0.0)
        theta_syn, theta_non = block.theta
        self.assertAlmostEqual(theta_syn, 3.0)
        self.assertEqual(theta_non, 0.0)

    def test_aggregates(self):
        blocks = make_codons_blocks(3, self.table)
        self.assertEqual([b.strains_count for b in blocks], [1, 2, 3])
        blocks[1].add_codon(self.composition("AAA", "AAG"))
        blocks[2].add_codon(self.composition("GAA", "GAA", "AAA"))
        sites = CodonsBlock.total_sites(blocks)
        self.assertGreater(sites[1], sites[0])
        self.assertEqual(CodonsBlock.total_polymorphisms(blocks), (1, 1))
        self.assertEqual(CodonsBlock.total_transitions(blocks), (1, 1))
        self.assertEqual(CodonsBlock.total_transversions(blocks), (0, 0))
        pi_syn, pi_non = CodonsBlock.aggregate_pi(blocks)
        self.assertGreater(pi_syn, 0.0)
        self.assertGreater(pi_non, 0.0)
        theta_syn, theta_non = CodonsBlock.aggregate_theta(blocks)
        self.assertAlmostEqual(theta_syn, blocks[1].theta[0])
        self.assertAlmostEqual(theta_non, blocks[2].theta[1])

    def test_empty_aggregates(self):
        blocks = make_codons_blocks(2, self.table)
        self.assertEqual(CodonsBlock.aggregate_pi(blocks), (0.0, 0.0))
        self.assertEqual(CodonsBlock.aggregate_theta(blocks), (0.0, 0.0))
        self.assertTrue(np.allclose(CodonsBlock.total_sites(blocks), (0.0, 0.0)))


if __name__ == "__main__":
    unittest.main()
