#!/usr/bin/env python3

import os
import tempfile
import unittest

import pandas as pd
from click.testing import CliRunner

from genalyzer.analysis.diversity import COLUMNS as DIVERSITY_COLUMNS
from genalyzer.analysis.subst import CODON_COLUMNS as SUBST_CODON_COLUMNS
from genalyzer.analysis.subst import SITE_COLUMNS as SUBST_SITE_COLUMNS
from genalyzer.analysis.synnonsyn import COLUMNS as SYNNONSYN_COLUMNS
from genalyzer.cli import cli

FASTA = """>g1|p1
ACGTAAAAAA
>g1|p2
ACGTAAAAAA
>g1|p3
ACGTAAAAAA
>g1|p4
GCGTAAAGAA
>g1|o1
ACGTTAAAGA
>g1|o2
ACGTTAAAGA
"""

POPULATIONS = """strain\tpopulation
p1\tPopA
p2\tPopA
p3\tPopA
p4\tPopA
o1\tPopB
o2\tPopB
"""


class TestAnalysisCommands(unittest.TestCase):
    """Test the analysis commands end to end."""

    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.TemporaryDirectory()
        self.fasta = self.path("genes.fasta")
        self.populations = self.path("pops.tsv")
        with open(self.fasta, "w") as f:
            f.write(FASTA)
        with open(self.populations, "w") as f:
            f.write(POPULATIONS)

    def tearDown(self):
        self.temp_dir.cleanup()

    def path(self, name):
        return os.path.join(self.temp_dir.name, name)

    def invoke(self, *args):
        base = ["-q", args[0], "-f", self.fasta, "--populations", self.populations]
        return self.runner.invoke(cli, base + list(args[1:]))

    def test_diversity(self):
        output = self.path("diversity.tsv")
        result = self.invoke("diversity", "-p", "PopA", "-o", "PopB", "--output", output)
        self.assertEqual(result.exit_code, 0, result.output)
        frame = pd.read_csv(output, sep="\t")
        self.assertEqual(list(frame.columns), DIVERSITY_COLUMNS)
        self.assertEqual(frame.loc[0, "gene"], "g1")
        self.assertEqual(frame.loc[0, "strains"], 4)
        self.assertEqual(frame.loc[0, "pop_polymorphisms"], 2)

    def test_synnonsyn(self):
        output = self.path("synnonsyn.tsv")
        result = self.invoke(
            "synnonsyn", "-p", "PopA", "-o", "PopB", "--output", output
        )
        self.assertEqual(result.exit_code, 0, result.output)
        frame = pd.read_csv(output, sep="\t")
        self.assertEqual(list(frame.columns), SYNNONSYN_COLUMNS)
        self.assertEqual(len(frame), 1)

    def test_daf(self):
        output = self.path("daf.tsv")
        result = self.invoke("daf", "-p", "PopA", "-o", "PopB", "--output", output)
        self.assertEqual(result.exit_code, 0, result.output)
        frame = pd.read_csv(output, sep="\t")
        self.assertEqual(frame["position"].tolist(), [1, 8])
        self.assertEqual(frame["derived"].tolist(), ["G", "G"])

    def test_daf_spectrum(self):
        output = self.path("spectrum.tsv")
        result = self.invoke(
            "daf", "-p", "PopA", "-o", "PopB", "--spectrum", "4", "--output", output
        )
        self.assertEqual(result.exit_code, 0, result.output)
        frame = pd.read_csv(output, sep="\t")
        self.assertEqual(frame["count"].tolist(), [0, 2, 0, 0])

    def test_subst(self):
        output = self.path("subst.tsv")
        result = self.invoke("subst", "-p", "PopA", "-o", "PopB", "--output", output)
        self.assertEqual(result.exit_code, 0, result.output)
        frame = pd.read_csv(output, sep="\t")
        self.assertEqual(list(frame.columns), SUBST_SITE_COLUMNS)
        rows = frame.set_index("category")
        self.assertEqual(rows.loc["population", "AG"], 2)
        self.assertEqual(rows.loc["divergent", "sites"], 8)
        self.assertEqual(rows.loc["divergent", "AT"], 1)
        self.assertEqual(rows.loc["divergent", "AG"], 1)

    def test_subst_coding(self):
        output = self.path("subst_coding.tsv")
        result = self.invoke(
            "subst", "-p", "PopA", "-o", "PopB", "--coding", "--output", output
        )
        self.assertEqual(result.exit_code, 0, result.output)
        frame = pd.read_csv(output, sep="\t")
        self.assertEqual(list(frame.columns), SUBST_CODON_COLUMNS)
        self.assertEqual(len(frame), 3)

    def test_config_file(self):
        config = self.path("config.yml")
        with open(config, "w") as f:
            f.write("population: PopA\noutgroup: PopB\nmax_strains: 3\n")
        output = self.path("diversity.tsv")
        result = self.invoke("diversity", "-c", config, "--output", output)
        self.assertEqual(result.exit_code, 0, result.output)
        frame = pd.read_csv(output, sep="\t")
        self.assertEqual(frame.loc[0, "strains"], 3)

    def test_population_is_required(self):
        result = self.invoke("diversity")
        self.assertEqual(result.exit_code, 2)
        self.assertIn("population of interest is required", result.output)

    def test_daf_without_outgroup_fails(self):
        result = self.invoke("daf", "-p", "PopA")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("needs an outgroup", result.output)

    def test_invalid_option_value(self):
        result = self.invoke("diversity", "-p", "PopA", "--singleton-cutoff", "2")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("singleton_cutoff", result.output)


class TestQualityCommand(unittest.TestCase):
    """Test the quality report."""

    def test_report(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            with open("genes.fasta", "w") as f:
                f.write(">good|s1\nATGAAATAA\n>bad|s1\nATGTAAAAATAA\n")
            result = runner.invoke(cli, ["-q", "quality", "-f", "genes.fasta"])
        self.assertEqual(result.exit_code, 0, result.output)
        lines = [l for l in result.output.splitlines() if "\t" in l]
        self.assertEqual(lines[0], "gene\tstrains\tquality\tproblems")
        rows = {l.split("\t")[0]: l.split("\t") for l in lines[1:]}
        # Without a population table every strain lacks populations.
        self.assertEqual(rows["good"][2], "4")
        self.assertEqual(rows["bad"][2], "4")


class TestCodonTableCommands(unittest.TestCase):
    """Test showing, exporting and checking codon tables."""

    def setUp(self):
        self.runner = CliRunner()

    def test_show(self):
        result = self.runner.invoke(cli, ["-q", "codon-table", "show"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Universal genetic code", result.output)
        self.assertIn("ATG\tMethionine\tMet\tM\tFalse\tTrue\t1", result.output)
        self.assertIn("TAA\tTerminal\tTer\t*\tTrue\tFalse\t2", result.output)

    def test_export_and_check(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(
                cli, ["-q", "codon-table", "export", "table.yaml", "--name", "Mine"]
            )
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue(os.path.exists("table.yaml"))

            result = self.runner.invoke(cli, ["-q", "codon-table", "check", "table.yaml"])
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertIn("Mine: 64 codons, 3 terminal, 1 start", result.output)

            with open("bad.yaml", "w") as f:
                f.write("name: bad\ncodons: []\n")
            result = self.runner.invoke(cli, ["-q", "codon-table", "check", "bad.yaml"])
            self.assertEqual(result.exit_code, 1)
            self.assertIn("Invalid codon table", result.output)

    def test_version(self):
        result = self.runner.invoke(cli, ["--version"])
        self.assertEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
