import unittest
from pathlib import Path

from pipeline.vcf_parser import (
    extract_genotype,
    parse_vcf,
    parse_vcf_file,
    patient_id_from_file_name,
)
from pipeline.vcf_validator import parse_info_field, validate_vcf


ROOT = Path(__file__).resolve().parents[2]
SAMPLE_VCF_DIR = ROOT / "sample_vcf"

HEADER = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSAMPLE1"
CYP2D6_ROW = "chr22\t42128945\trs3892097\tC\tT\t100\tPASS\tGENE=CYP2D6;STAR=*4;RS=rs3892097\tGT\t0/1"


def _vcf(*rows, fileformat="##fileformat=VCFv4.2", header=HEADER):
    lines = []
    if fileformat is not None:
        lines.append(fileformat)
    if header is not None:
        lines.append(header)
    lines.extend(rows)
    return "\n".join(lines) + "\n"


class StructuralPrecheckTests(unittest.TestCase):
    def test_well_formed_file_passes(self):
        report = validate_vcf(_vcf(CYP2D6_ROW))
        self.assertTrue(report.ok)
        self.assertEqual(report.errors, [])
        self.assertEqual(report.warnings, [])
        self.assertTrue(report.stats.has_fileformat)
        self.assertTrue(report.stats.has_header)
        self.assertTrue(report.stats.columns_ok)
        self.assertEqual(report.stats.sample_name, "SAMPLE1")
        self.assertEqual(report.stats.variant_lines, 1)

    def test_missing_fileformat_gives_corrective_error(self):
        report = validate_vcf(_vcf(CYP2D6_ROW, fileformat=None))
        self.assertFalse(report.ok)
        self.assertFalse(report.stats.has_fileformat)
        self.assertIn('add "##fileformat=VCFv4.2" as the first line', report.errors[0])

    def test_older_version_is_rejected(self):
        report = validate_vcf(_vcf(CYP2D6_ROW, fileformat="##fileformat=VCFv4.1"))
        self.assertFalse(report.ok)
        self.assertTrue(report.errors[0].startswith("Missing VCFv4.2 header"))

    def test_leading_blank_lines_are_ignored_for_fileformat(self):
        report = validate_vcf("\n\n" + _vcf(CYP2D6_ROW))
        self.assertTrue(report.stats.has_fileformat)
        self.assertTrue(report.ok)

    def test_crlf_line_endings_are_tolerated(self):
        report = validate_vcf(_vcf(CYP2D6_ROW).replace("\n", "\r\n"))
        self.assertTrue(report.ok, report.errors)
        self.assertEqual(report.stats.sample_name, "SAMPLE1")

    def test_missing_header_lists_expected_columns(self):
        report = validate_vcf(_vcf(CYP2D6_ROW, header=None))
        self.assertFalse(report.ok)
        self.assertFalse(report.stats.has_header)
        self.assertIn("#CHROM\\tPOS\\tID\\tREF\\tALT\\tQUAL\\tFILTER\\tINFO\\tFORMAT\\t<SAMPLE>", report.errors[-1])

    def test_space_separated_header_is_reported(self):
        header = "#CHROM POS ID REF ALT QUAL FILTER INFO FORMAT SAMPLE1"
        report = validate_vcf(_vcf(CYP2D6_ROW, header=header))
        self.assertFalse(report.ok)
        self.assertIn("Header row must be TAB-separated", report.errors[0])
        self.assertFalse(report.stats.columns_ok)

    def test_header_without_sample_column(self):
        header = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT"
        report = validate_vcf(_vcf(CYP2D6_ROW, header=header))
        self.assertFalse(report.ok)
        self.assertIn("No sample column found", report.errors[0])
        self.assertIsNone(report.stats.sample_name)

    def test_short_data_line_reports_one_based_line_number(self):
        short = "chr22\t42128945\trs3892097\tC\tT\t100\tPASS\tGENE=CYP2D6"
        report = validate_vcf(_vcf(CYP2D6_ROW, short))
        self.assertFalse(report.ok)
        self.assertEqual(len(report.errors), 1)
        self.assertTrue(report.errors[0].startswith("Data line 4 has fewer than 10 TAB-separated columns"))
        self.assertEqual(report.stats.variant_lines, 1)

    def test_missing_annotations_are_aggregated(self):
        rows = [
            "chr22\t42128945\trs3892097\tC\tT\t100\tPASS\tGENE=CYP2D6;RS=rs3892097\tGT\t0/1",
            "chr10\t96702047\t.\tC\tT\t100\tPASS\tGENE=CYP2C9;STAR=*2\tGT\t0/1",
            "chr12\t21331549\trs4149056\tT\tC\t100\tPASS\tSTAR=*5\tGT\t0/1",
        ]
        report = validate_vcf(_vcf(*rows))
        self.assertTrue(report.ok)
        self.assertEqual(report.stats.missing_gene_count, 1)
        self.assertEqual(report.stats.missing_rsid_count, 1)
        self.assertEqual(report.stats.missing_star_count, 1)
        self.assertEqual(
            report.warnings,
            ["Some annotations are missing (1 without GENE, 1 without RSID, 1 without STAR) - results may be Unknown"],
        )

    def test_warning_lists_only_nonzero_counts(self):
        row = "chr22\t42128945\trs3892097\tC\tT\t100\tPASS\tGENE=CYP2D6\tGT\t0/1"
        report = validate_vcf(_vcf(row))
        self.assertEqual(
            report.warnings,
            ["Some annotations are missing (1 without STAR) - results may be Unknown"],
        )

    def test_sample_files_pass_precheck(self):
        for name in ("patient_im_cyp2d6.vcf", "patient_pm_cyp2d6.vcf", "patient_normal_all.vcf"):
            with self.subTest(vcf=name):
                report = validate_vcf((SAMPLE_VCF_DIR / name).read_text(encoding="utf-8"))
                self.assertTrue(report.ok, report.errors)

    def test_missing_fileformat_sample_fails_precheck(self):
        report = validate_vcf((SAMPLE_VCF_DIR / "patient_missing_fileformat.vcf").read_text(encoding="utf-8"))
        self.assertFalse(report.ok)


class InfoAndGenotypeTests(unittest.TestCase):
    def test_info_pairs_flags_and_empty_tokens(self):
        info = parse_info_field("GENE=CYP2D6;DUP;;STAR=*1/*2;NOTE=a=b")
        self.assertEqual(info, {"GENE": "CYP2D6", "DUP": "true", "STAR": "*1/*2", "NOTE": "a=b"})

    def test_dot_info_is_empty(self):
        self.assertEqual(parse_info_field("."), {})
        self.assertEqual(parse_info_field(""), {})

    def test_genotype_uses_gt_position(self):
        self.assertEqual(extract_genotype("45:1/1:99", "DP:GT:GQ"), "1/1")

    def test_genotype_without_gt_uses_first_subfield(self):
        self.assertEqual(extract_genotype("0|1:45", "DP:GQ"), "0|1")
        self.assertEqual(extract_genotype("0/1:45", None), "0/1")

    def test_genotype_defaults_to_reference(self):
        self.assertEqual(extract_genotype(".", "GT"), "0/0")
        self.assertEqual(extract_genotype("", "GT"), "0/0")
        self.assertEqual(extract_genotype(None, "GT"), "0/0")


class ParserTests(unittest.TestCase):
    def test_parses_variant_and_annotations(self):
        result = parse_vcf(_vcf(CYP2D6_ROW), "sample.vcf", 2048)
        self.assertTrue(result.validation.valid)
        self.assertEqual(result.validation.patient_id, "SAMPLE1")
        self.assertEqual(result.validation.variant_count, 1)
        self.assertEqual(result.validation.genes_detected, ["CYP2D6"])
        self.assertEqual(result.file_size_mb, 0.002)

        v = result.variants[0]
        self.assertEqual((v.chrom, v.pos, v.id, v.ref, v.alt), ("chr22", 42128945, "rs3892097", "C", "T"))
        self.assertEqual(v.qual, "100")
        self.assertEqual(v.filter, "PASS")
        self.assertEqual((v.gene, v.star, v.rsid), ("CYP2D6", "*4", "rs3892097"))
        self.assertEqual(v.genotype, "0/1")
        self.assertEqual(v.line_number, 3)

    def test_rsid_falls_back_to_id_column(self):
        row = "chr22\t42128945\trs3892097\tC\tT\t100\tPASS\tGENE=CYP2D6;STAR=*4\tGT\t0/1"
        v = parse_vcf(_vcf(row), "x.vcf", 10).variants[0]
        self.assertEqual(v.rsid, "rs3892097")

    def test_non_rs_id_is_not_used_as_rsid(self):
        row = "chr22\t42128945\tvar1\tC\tT\t100\tPASS\tGENE=CYP2D6;STAR=*4\tGT\t0/1"
        result = parse_vcf(_vcf(row), "x.vcf", 10)
        self.assertIsNone(result.variants[0].rsid)
        self.assertIn("Line 3: missing RS", result.validation.warnings)

    def test_missing_fileformat_and_header_still_parse(self):
        result = parse_vcf(_vcf(CYP2D6_ROW, fileformat=None, header=None), "my-file.vcf", 10)
        self.assertTrue(result.validation.valid)
        self.assertEqual(len(result.variants), 1)
        self.assertEqual(result.validation.patient_id, "PATIENT_MY_FILE")
        self.assertTrue(any("##fileformat=" in w for w in result.validation.warnings))
        self.assertTrue(any("#CHROM" in w for w in result.validation.warnings))

    def test_non_standard_version_warns(self):
        result = parse_vcf(_vcf(CYP2D6_ROW, fileformat="##fileformat=VCFv3.3"), "x.vcf", 10)
        self.assertIn("Non-standard VCF version: ##fileformat=VCFv3.3", result.validation.warnings)
        self.assertTrue(result.validation.valid)

    def test_short_header_is_structural_error(self):
        result = parse_vcf(_vcf(CYP2D6_ROW, header="#CHROM\tPOS\tID"), "x.vcf", 10)
        self.assertFalse(result.validation.valid)
        self.assertEqual(
            result.validation.errors,
            ["Column header must have at least CHROM, POS, ID, REF, ALT columns"],
        )

    def test_header_without_sample_uses_file_name(self):
        header = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO"
        row = "chr22\t42128945\trs3892097\tC\tT\t100\tPASS\tGENE=CYP2D6;STAR=*4"
        result = parse_vcf(_vcf(row, header=header), "patient 42.txt", 10)
        self.assertEqual(result.validation.patient_id, "PATIENT_PATIENT_42")
        self.assertIn("No sample column found in header", result.validation.warnings)
        self.assertEqual(result.variants[0].genotype, "0/0")

    def test_short_lines_are_skipped_with_warning(self):
        result = parse_vcf(_vcf("chr22\t42128945\trs1", CYP2D6_ROW), "x.vcf", 10)
        self.assertEqual(len(result.variants), 1)
        self.assertIn("Line 3: insufficient columns (3), skipping", result.validation.warnings)

    def test_invalid_position_is_skipped(self):
        row = "chr22\tabc\trs3892097\tC\tT\t100\tPASS\tGENE=CYP2D6;STAR=*4\tGT\t0/1"
        result = parse_vcf(_vcf(row, CYP2D6_ROW), "x.vcf", 10)
        self.assertEqual(len(result.variants), 1)
        self.assertEqual(result.variants[0].line_number, 4)

    def test_unsupported_genes_are_kept_but_not_detected(self):
        row = "chr7\t99999\trs1\tA\tG\t100\tPASS\tGENE=CYP3A5;STAR=*3;RS=rs1\tGT\t0/1"
        result = parse_vcf(_vcf(row, CYP2D6_ROW), "x.vcf", 10)
        self.assertEqual(len(result.variants), 2)
        self.assertEqual(result.variants[0].gene, "CYP3A5")
        self.assertEqual(result.validation.genes_detected, ["CYP2D6"])

    def test_missing_tag_warnings_are_capped_at_five(self):
        rows = [f"chr1\t{100 + i}\t.\tA\tG\t100\tPASS\t.\tGT\t0/1" for i in range(8)]
        result = parse_vcf(_vcf(*rows), "x.vcf", 10)
        self.assertEqual(len(result.variants), 8)
        tag_warnings = [w for w in result.validation.warnings if "missing" in w]
        self.assertEqual(len(tag_warnings), 5)
        self.assertEqual(tag_warnings[0], "Line 3: missing GENE, STAR, RS")

    def test_variants_are_immutable(self):
        v = parse_vcf(_vcf(CYP2D6_ROW), "x.vcf", 10).variants[0]
        with self.assertRaises(Exception):
            v.gene = "DPYD"

    def test_info_annotations_are_read_only(self):
        v = parse_vcf(_vcf(CYP2D6_ROW), "x.vcf", 10).variants[0]
        before = dict(v.info)
        with self.assertRaises(TypeError):
            v.info["DUP"] = "yes"
        with self.assertRaises(TypeError):
            v.info.update({"STAR": "*1"})
        with self.assertRaises(TypeError):
            del v.info["GENE"]
        self.assertEqual(v.info, before)
        self.assertEqual(v.model_dump()["info"], before)
        self.assertEqual(v.model_copy(deep=True).info, before)

    def test_patient_id_from_file_name(self):
        self.assertEqual(patient_id_from_file_name("abc.VCF"), "PATIENT_ABC")
        self.assertEqual(
            patient_id_from_file_name("a-very-long-patient-file-name.vcf"),
            "PATIENT_A_VERY_LONG_PATIENT_",
        )

    def test_parse_sample_file_from_disk(self):
        result = parse_vcf_file(str(SAMPLE_VCF_DIR / "patient_missing_tags.vcf"))
        self.assertEqual(result.validation.patient_id, "PATIENT_F")
        self.assertEqual(len(result.variants), 3)
        self.assertEqual(result.validation.genes_detected, ["CYP2D6", "CYP2C9"])
        self.assertIn("Line 9: missing STAR", result.validation.warnings)
        self.assertIn("Line 10: missing RS", result.validation.warnings)
        self.assertIn("Line 11: missing GENE", result.validation.warnings)


if __name__ == "__main__":
    unittest.main()
