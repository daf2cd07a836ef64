"""泛函登记表。"""

import pytest

from sadscf import functionals
from sadscf.functionals import FunctionalInfo


@pytest.mark.quick
@pytest.mark.parametrize(
    "name, omega, kfrac, kshort",
    [
        ("none", 0.0, 0.0, 0.0),
        ("hf", 0.0, 1.0, 0.0),
        ("lda_x", 0.0, 0.0, 0.0),
        ("lda0", 0.0, 0.25, 0.0),
        ("yukawa_hf", 0.5, 0.0, 1.0),
    ],
)
def test_exact_exchange(name, omega, kfrac, kshort):
    assert functionals.exact_exchange(name) == (omega, kfrac, kshort)


@pytest.mark.quick
def test_lookup_is_case_insensitive_and_resolves_aliases():
    assert functionals.lookup("HF") is functionals.lookup("hf")
    assert functionals.lookup("Slater") is functionals.lookup("lda_x")
    assert functionals.lookup("vwn").kernel == "vwn5"
    assert functionals.lookup("pz81").kernel == "pz81"


@pytest.mark.quick
def test_unknown_functional():
    with pytest.raises(ValueError, match="未知泛函"):
        functionals.lookup("b3lyp")


@pytest.mark.quick
def test_has_dft_and_is_meta():
    assert not functionals.has_dft("hf", "none")
    assert functionals.has_dft("hf", "lda_c_vwn")
    assert functionals.has_dft("lda0", "none")
    assert not functionals.is_meta("lda_x", "lda_c_pz")


@pytest.mark.quick
def test_register_meta_functional():
    info = functionals.register_functional(
        FunctionalInfo("test_registry_mgga", "x", family="mgga", kernel="dirac")
    )
    assert functionals.lookup("TEST_REGISTRY_MGGA") is info
    assert "test_registry_mgga" in functionals.registered_functionals()
    assert functionals.is_meta("test_registry_mgga", "none")


@pytest.mark.quick
def test_functional_info_validation():
    with pytest.raises(ValueError):
        FunctionalInfo("bad", "xc")
    with pytest.raises(ValueError):
        FunctionalInfo("bad", "x", family="lda")
    with pytest.raises(ValueError):
        FunctionalInfo("bad", "x", kshort=1.0)
    assert not FunctionalInfo("scaled_out", "x", family="lda", kernel="dirac", dft_scale=0.0).is_dft
