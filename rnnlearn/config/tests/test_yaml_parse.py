"""
Tests for the YAML experiment loader.
"""
import pickle
import re
from decimal import Decimal

import numpy as np
import pytest
import yaml

from rnnlearn.config.yaml_parse import (load, load_path, Proxy,
                                        SCIENTIFIC_NOTATION_REGEXP)
from rnnlearn.models.mlp import Dropout, Linear


def test_load_path(tmpdir):
    path = tmpdir.join('experiment.yaml')
    path.write("rho: 7\nsingle: true\n")
    assert load_path(str(path)) == {'rho': 7, 'single': True}


def test_obj_builds_layer():
    loaded = load("a: !obj:rnnlearn.models.mlp.Linear "
                  "{ in_size: 3, out_size: 2 }")
    assert isinstance(loaded['a'], Linear)
    assert loaded['a'].get_param_count() == 3 * 2 + 2


def test_obj_builds_any_callable():
    loaded = load("ratio: !obj:decimal.Decimal { value: '0.25' }")
    assert loaded['ratio'] == Decimal('0.25')


@pytest.mark.parametrize('text, matches', [
    ('1e-3', True), ('-2E+4', True), ('.5e2', True), ('3.e1', True),
    ('0.001', False), ('12', False), ('.e4', False), ('1e2.5', False),
    ('x1e3', False)])
def test_scientific_notation_regexp(text, matches):
    assert bool(re.match(SCIENTIFIC_NOTATION_REGEXP, text)) == matches


def test_scientific_notation_is_a_float():
    # YAML 1.1 would read these as strings.
    loaded = load('learning_rate: 1e-3\ntolerance: -2.5E-7\nbig: .3e4\n')
    assert loaded == {'learning_rate': 1e-3, 'tolerance': -2.5e-7,
                      'big': 3000.}
    assert all(isinstance(value, float) for value in loaded.values())


def test_float_tag():
    assert load("a: !float '4'")['a'] == 4.


@pytest.mark.parametrize('source', [
    "a: !import 'rnnlearn.models.mlp.Linear'",
    "a: !import rnnlearn.models.mlp.Linear",
    "a: !import:rnnlearn.models.mlp.Linear"])
def test_import(source):
    assert load(source)['a'] is Linear


def test_import_bad_attribute():
    with pytest.raises(AttributeError) as excinfo:
        load("a: !import:rnnlearn.models.mlp.Linaer")
    assert 'Did you mean Linear?' in str(excinfo.value)


def test_import_bad_module():
    with pytest.raises(ImportError) as excinfo:
        load("a: !import:rnnlearn.no_such_module.Thing")
    assert 'could import rnnlearn' in str(excinfo.value)


def test_variables_from_os_environ(monkeypatch):
    monkeypatch.setenv('RNNLEARN_TEST_RATIO', '0.3')
    loaded = load('a: "${RNNLEARN_TEST_RATIO}"')
    assert loaded['a'] == '0.3'


def test_environ_argument_wins(monkeypatch):
    monkeypatch.setenv('RNNLEARN_TEST_RATIO', '0.3')
    loaded = load('a: "${RNNLEARN_TEST_RATIO}"',
                  environ={'RNNLEARN_TEST_RATIO': '0.6'})
    assert loaded['a'] == '0.6'


def test_pkl_path_with_variable(tmpdir, monkeypatch):
    path = tmpdir.join('layers.pkl')
    with open(str(path), 'wb') as f:
        pickle.dump({'sizes': (2, 3)}, f)
    monkeypatch.setenv('RNNLEARN_TEST_PKL', str(path))
    loaded = load('a: !pkl: "${RNNLEARN_TEST_PKL}"')
    assert loaded['a'] == {'sizes': (2, 3)}


def test_pkl_loads_npy(tmpdir):
    path = str(tmpdir.join('predictors.npy'))
    np.save(path, np.arange(6.).reshape((1, 2, 3)))
    loaded = load("{'a': !pkl: '%s'}" % path)
    np.testing.assert_array_equal(loaded['a'],
                                  np.arange(6.).reshape((1, 2, 3)))


def test_yaml_src_keeps_unsubstituted_variable(monkeypatch):
    monkeypatch.setenv('RNNLEARN_TEST_RATIO', '0.5')
    loaded = load('a: !obj:rnnlearn.models.mlp.Dropout '
                  '{ ratio: "${RNNLEARN_TEST_RATIO}" }\n')
    assert isinstance(loaded['a'], Dropout)
    assert loaded['a'].ratio == 0.5
    assert '${RNNLEARN_TEST_RATIO}' in loaded['a'].yaml_src


def test_obj_keywords_must_be_strings():
    with pytest.raises(TypeError) as excinfo:
        load("a: !obj:decimal.Decimal { 1 }")
    assert str(excinfo.value) == \
        "Keyword 1 of !obj:decimal.Decimal is not a string"


def test_repeated_keyword_is_an_error():
    source = ("model: !obj:rnnlearn.models.rnn.RNN {\n"
              "    rho: 3,\n"
              "    rho: 4,\n"
              "}\n")
    with pytest.raises(yaml.constructor.ConstructorError) as excinfo:
        load(source)
    assert str(excinfo.value).endswith("found duplicate key (rho)")


def test_equal_values_under_different_keywords():
    loaded = load("a: !obj:rnnlearn.models.mlp.Linear "
                  "{ in_size: 4, out_size: 4 }")
    assert loaded['a'].get_param_count() == 20


def test_unknown_keyword_is_reported():
    with pytest.raises(TypeError) as excinfo:
        load("a: !obj:rnnlearn.models.mlp.Linear "
             "{ in_size: 3, out_szie: 2 }")
    assert 'Did you mean out_size?' in str(excinfo.value)


def test_missing_keyword_is_reported():
    with pytest.raises(TypeError) as excinfo:
        load("a: !obj:rnnlearn.models.mlp.Linear { in_size: 3 }")
    assert str(excinfo.value) == \
        "Linear did not get these expected arguments: out_size"


def test_instantiate_false_returns_proxies():
    loaded = load("a: !obj:rnnlearn.models.mlp.Dropout { ratio: 0.1 }",
                  instantiate=False)
    assert isinstance(loaded['a'], Proxy)
    assert loaded['a'].callable is Dropout
    assert loaded['a'].keywords == {'ratio': 0.1}


def test_pkl_is_loaded_when_built(tmpdir):
    """
    A `!pkl:` node stays a proxy until the graph is built, so its path
    may use variables only known at build time.
    """
    path = str(tmpdir.join('data.npy'))
    np.save(path, np.ones(3))
    graph = load("a: !pkl: '${DATA_DIR}/data.npy'", instantiate=False)
    assert isinstance(graph['a'], Proxy)
    loaded = load("a: !pkl: '${DATA_DIR}/data.npy'",
                  environ={'DATA_DIR': str(tmpdir)})
    np.testing.assert_array_equal(loaded['a'], np.ones(3))


def test_pkl_needs_a_space():
    with pytest.raises(yaml.YAMLError):
        load("a: !pkl:'x.pkl'")


def test_aliases_share_the_built_object():
    loaded = load("a: &layer !obj:rnnlearn.models.mlp.Linear "
                  "{ in_size: 2, out_size: 2 }\n"
                  "b: *layer\n")
    assert loaded['a'] is loaded['b']
