#!/usr/bin/env python3

import unittest

import numpy as np

from genalyzer.codons.graph import get_codon
from genalyzer.codons.tables import universal_table
from genalyzer.statistics.basic import (
    calculate_codon_k,
    calculate_codon_pi,
    calculate_k,
    calculate_pi,
    calculate_theta,
    harmonic_numbers,
    jukes_cantor,
    substitution_type,
    tajima_d,
    tajima_d_prime,
)
from genalyzer.statistics.codon_composition import CodonComposition
from genalyzer.statistics.composition import SiteComposition


class TestJukesCantor(unittest.TestCase):
    """Test the multiple-hit correction."""

    def test_zero(self):
        self.assertEqual(jukes_cantor(0.0), 0.0)

    def test_value(self):
        self.assertAlmostEqual(jukes_cantor(0.1), -0.75 * np.log(1 - 0.4 / 3))
        self.assertGreater(jukes_cantor(0.1), 0.1)

    def test_monotonic_below_saturation(self):
        values = [jukes_cantor(d) for d in np.linspace(0.0, 0.74, 50)]
        self.assertTrue(all(b > a for a, b in zip(values, values[1:])))

    def test_saturation_and_invalid_input(self):
        self.assertEqual(jukes_cantor(0.75), np.inf)
        self.assertEqual(jukes_cantor(0.9), np.inf)
        self.assertTrue(np.isnan(jukes_cantor(-0.1)))
        self.assertTrue(np.isnan(jukes_cantor(np.nan)))


class TestDiversityEstimators(unittest.TestCase):
    """Test pi, theta and Tajima's D."""

    def test_harmonic_numbers(self):
        a1, a2 = harmonic_numbers(4)
        self.assertAlmostEqual(a1, 11 / 6)
        self.assertAlmostEqual(a2, 1 + 1 / 4 + 1 / 9)

    def test_calculate_pi(self):
        self.assertAlmostEqual(calculate_pi(SiteComposition("AACT")), 10 / 12)
        self.assertEqual(calculate_pi(SiteComposition("AAAA")), 0.0)
        self.assertEqual(calculate_pi(SiteComposition("A---")), 0.0)

    def test_calculate_theta(self):
        self.assertAlmostEqual(calculate_theta(2, 10, 4), 0.2 / (11 / 6))
        self.assertEqual(calculate_theta(0, 10, 4), 0.0)
        self.assertEqual(calculate_theta(2, 10, 1), 0.0)
        self.assertEqual(calculate_theta(2, 0, 4), 0.0)

    def test_tajima_d_undefined(self):
        self.assertTrue(np.isnan(tajima_d(0.1, 0.1, 10, 1, 3)))
        self.assertTrue(np.isnan(tajima_d(0.0, 0.0, 10, 0, 10)))

    def test_tajima_d_sign(self):
        theta = calculate_theta(1, 10, 4)
        # A singleton in 4 sequences: pi is below theta.
        pi = (3 / 6) / 10
        self.assertLess(tajima_d(pi, theta, 10, 1, 4), 0)
        # A 2/2 split: pi is above theta.
        pi = (4 / 6) / 10
        self.assertGreater(tajima_d(pi, theta, 10, 1, 4), 0)

    def test_tajima_d_prime_is_one_for_singletons(self):
        theta = calculate_theta(1, 10, 4)
        pi = (3 / 6) / 10
        self.assertAlmostEqual(tajima_d_prime(pi, theta, 10, 1, 4), 1.0)
        self.assertTrue(np.isnan(tajima_d_prime(pi, theta, 10, 0, 4)))


class TestDivergence(unittest.TestCase):
    """Test per-site divergence between a population and an outgroup."""

    def test_calculate_k(self):
        self.assertEqual(calculate_k(SiteComposition("AA"), SiteComposition("G")), 1.0)
        self.assertEqual(calculate_k(SiteComposition("AG"), SiteComposition("A")), 0.5)
        self.assertEqual(calculate_k(SiteComposition("AA"), SiteComposition("A")), 0.0)
        self.assertTrue(np.isnan(calculate_k(SiteComposition("AA"), SiteComposition("-"))))

    def test_substitution_type(self):
        self.assertEqual(substitution_type("A", "G"), 1)
        self.assertEqual(substitution_type("c", "T"), 1)
        self.assertEqual(substitution_type("A", "C"), 2)
        self.assertEqual(substitution_type("A", "a"), 0)
        self.assertEqual(substitution_type("A", "N"), -1)


class TestCodonEstimators(unittest.TestCase):
    """Test synonymous and nonsynonymous pi and K."""

    def setUp(self):
        self.table = universal_table()

    def test_codon_pi_of_synonymous_pair(self):
        cc = CodonComposition(self.table)
        cc.add_codon("AAA")
        cc.add_codon("AAG")
        ps, pn = calculate_codon_pi(cc, self.table)
        syn_sites = get_codon("AAA").site_counts(self.table)[0]
        self.assertAlmostEqual(ps, 1 / syn_sites)
        self.assertEqual(pn, 0.0)

    def test_codon_pi_of_single_codon(self):
        cc = CodonComposition(self.table)
        cc.add_codon("AAA")
        self.assertEqual(calculate_codon_pi(cc, self.table), (0.0, 0.0))

    def test_codon_k(self):
        ks, kn = calculate_codon_k(
            [get_codon("AAA")], [get_codon("GAA")], self.table
        )
        self.assertEqual(ks, 0.0)
        nonsyn = (
            get_codon("AAA").site_counts(self.table)[1]
            + get_codon("GAA").site_counts(self.table)[1]
        ) / 2
        self.assertAlmostEqual(kn, 1 / nonsyn)
        self.assertEqual(calculate_codon_k([], [get_codon("AAA")], self.table), (0.0, 0.0))


if __name__ == "__main__":
    unittest.main()
