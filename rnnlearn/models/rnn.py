"""
Recurrent Neural Network

A container that owns an ordered stack of layers and trains it on
sequences with truncated backpropagation through time (BPTT).

Sequence tensors are laid out as `(feature, example, time_step)`. The
network exposes the objective contract consumed by the optimizers of
`rnnlearn.training_algorithms`:
`evaluate`, `evaluate_with_gradient`, `gradient`, `num_functions` and
`shuffle`.
"""
__license__ = "3-clause BSD"

import logging
from collections import deque

import numpy as np

from rnnlearn.configdefaults import config
from rnnlearn.costs.cost import check_output_layer, default_output_layer
from rnnlearn.expr import activations
from rnnlearn.initialization import RandomInitialization
from rnnlearn.models.mlp import Layer
from rnnlearn.models.model import Model
from rnnlearn.models.parameters import ParameterArena
from rnnlearn.utils import as_floatX, py_integer_types, safe_zip, wraps
from rnnlearn.utils.rng import make_np_rng

logger = logging.getLogger(__name__)


class Recurrent(Layer):
    """
    An Elman cell, `h_t = f(W x_t + U h_{t-1} + b)`.

    The hidden state is carried from one `fprop` call to the next until
    `reset_cell` is called. The error fed back from step t+1 is added to
    the error coming from the layer above.

    Parameters
    ----------
    in_size : int
        Number of input features.
    out_size : int
        Number of hidden units.
    nonlinearity : Nonlinearity, optional
        Defaults to `rnnlearn.expr.activations.Tanh`.
    """

    def __init__(self, in_size, out_size, nonlinearity=None):
        super(Recurrent, self).__init__()
        if in_size <= 0 or out_size <= 0:
            raise ValueError("Recurrent needs positive sizes, got "
                             "in_size=%s, out_size=%s" % (in_size, out_size))
        if nonlinearity is None:
            nonlinearity = activations.Tanh()
        self.in_size = int(in_size)
        self.out_size = int(out_size)
        self.nonlinearity = nonlinearity
        self.reset_cell(None)

    def get_param_count(self):
        return (self.out_size * self.in_size +
                self.out_size * self.out_size + self.out_size)

    def _unpack(self, vector):
        n_W = self.out_size * self.in_size
        n_U = self.out_size * self.out_size
        W = vector[:n_W].reshape((self.out_size, self.in_size))
        U = vector[n_W:n_W + n_U].reshape((self.out_size, self.out_size))
        b = vector[n_W + n_U:]
        return W, U, b

    def get_weights(self):
        """
        Returns `(W, U, b)` as views into the parameter arena.
        """
        return self._unpack(self.get_param_view())

    def reset_cell(self, rho):
        """
        Forgets the hidden state and the per-step history.

        Notes
        -----
        At most `rho` steps are remembered for `bprop` and `gradient`.
        """
        self._state = None
        # Each record is [h_prev, h, delta].
        self._history = deque(maxlen=rho)
        self._recurrent_error = None
        self._bprop_index = 0
        self._gradient_index = 0

    @wraps(Layer.fprop)
    def fprop(self, state_below):
        W, U, b = self.get_weights()
        if state_below.shape[0] != self.in_size:
            raise ValueError("%s expects %d input features, got %d" %
                             (self, self.in_size, state_below.shape[0]))
        batch_size = state_below.shape[1]
        h_prev = self._state
        if h_prev is None:
            h_prev = np.zeros((self.out_size, batch_size),
                              dtype=state_below.dtype)
        elif h_prev.shape[1] != batch_size:
            raise ValueError("%s holds the state of %d examples but got a "
                             "batch of %d; call reset_cell between batches"
                             % (self, h_prev.shape[1], batch_size))
        h = self.nonlinearity(np.dot(W, state_below) + np.dot(U, h_prev) +
                              b[:, np.newaxis])
        self._state = h
        self._history.append([h_prev, h, None])
        # A new forward sweep starts a new backward sweep.
        self._recurrent_error = None
        self._bprop_index = len(self._history)
        self._gradient_index = len(self._history)
        return h

    @wraps(Layer.bprop)
    def bprop(self, state, error):
        W, U, _ = self.get_weights()
        if self._bprop_index == 0:
            raise ValueError("%s.bprop was called more often than fprop "
                             "since the last reset_cell" % self)
        self._bprop_index -= 1
        record = self._history[self._bprop_index]
        if self._recurrent_error is not None:
            error = error + self._recurrent_error
        delta = error * self.nonlinearity.deriv(record[1])
        record[2] = delta
        self._recurrent_error = np.dot(U.T, delta)
        return np.dot(W.T, delta)

    @wraps(Layer.gradient)
    def gradient(self, state_below, error, gradient):
        """
        Notes
        -----
        Uses the error stored by `bprop` for this step, which includes
        the error fed back from the next step; `error` is ignored.
        """
        if self._gradient_index == 0:
            raise ValueError("%s.gradient was called more often than fprop "
                             "since the last reset_cell" % self)
        self._gradient_index -= 1
        h_prev, _, delta = self._history[self._gradient_index]
        if delta is None:
            raise ValueError("%s.gradient was called before bprop for "
                             "this step" % self)
        gW, gU, gb = self._unpack(gradient)
        gW += np.dot(delta, state_below.T)
        gU += np.dot(delta, h_prev.T)
        gb += delta.sum(axis=1)

    def __getstate__(self):
        d = dict(self.__dict__)
        for name in ('_state', '_history', '_recurrent_error',
                     '_bprop_index', '_gradient_index'):
            d.pop(name, None)
        return d

    def __setstate__(self, d):
        self.__dict__.update(d)
        self.reset_cell(None)

    def __str__(self):
        return "Recurrent(%d -> %d, %s)" % (self.in_size, self.out_size,
                                            self.nonlinearity)


class RNN(Model):
    """
    A recurrent network trained with truncated BPTT.

    Parameters
    ----------
    rho : int
        Length of the BPTT windows. Sequences are processed in consecutive
        windows of at most `rho` steps; the hidden state is carried from
        one window to the next but the error is not.
    single : bool, optional
        If True, only the last time step is scored (sequence-to-one).
    output_layer : OutputLayer, optional
        The error metric. Defaults to `NegativeLogLikelihood`.
    init_rule : NdarrayInitialization, optional
        Fills the parameter vector. Defaults to `RandomInitialization`.
    layers : list of Layer, optional
        Layers to `add`, in forward order.
    seed : int or list of int, optional
        Seed of the generator used for initialization and shuffling.
        Defaults to `config.seed`.
    """

    _serialization_version = 1

    def __init__(self, rho, single=False, output_layer=None, init_rule=None,
                 layers=None, seed=None):
        super(RNN, self).__init__()
        if int(rho) != rho or rho < 1:
            raise ValueError("rho must be a positive integer, got %s" %
                             (rho,))
        if output_layer is None:
            output_layer = default_output_layer()
        if init_rule is None:
            init_rule = RandomInitialization()
        self.rho = int(rho)
        self.single = bool(single)
        self.deterministic = True
        self.output_layer = check_output_layer(output_layer)
        self.init_rule = init_rule
        self.rng = make_np_rng(seed, default_seed=config.seed,
                               which_method=['uniform', 'permutation'])
        self.layers = []
        self._arena = None
        self._finalized = False
        self._predictors = None
        self._responses = None
        self.register_names_to_del(['_predictors', '_responses',
                                    '_step_outputs', '_step_errors'])
        self._clear_cache()
        if layers is not None:
            for layer in layers:
                self.add(layer)

    def __setstate__(self, d):
        """
        Patches states saved before the `single` and `deterministic`
        fields existed.
        """
        super(RNN, self).__setstate__(d)
        version = d.get('_serialization_version', 0)
        if version < 1:
            logger.info("Upgrading a version %d RNN pickle to version %d",
                        version, self._serialization_version)
            if 'single' not in d:
                self.single = False
            if 'deterministic' not in d:
                self.deterministic = True
        self._serialization_version = type(self)._serialization_version
        self._predictors = None
        self._responses = None
        self._clear_cache()

    def _clear_cache(self):
        self._step_outputs = []
        self._step_errors = []

    # Structure

    def add(self, layer):
        """
        Appends a layer to the network. The parameter layout is stale
        until the next `reset`.

        Parameters
        ----------
        layer : Layer
            The layer. It must not belong to another network.
        """
        if not isinstance(layer, Layer):
            raise TypeError("Expected a Layer, got %s" % type(layer))
        if any(layer is other for other in self.layers):
            raise ValueError("%s was already added to this network" % layer)
        layer.set_rnn(self)
        self.layers.append(layer)
        self._finalized = False

    def release(self):
        """
        Gives the layers back to the caller and empties the network.

        Returns
        -------
        layers : list of Layer
            The layers, in forward order, detached from any network.
        """
        layers = self.layers
        for layer in layers:
            layer.unbind()
            layer.set_rnn(None)
        self.layers = []
        self._arena = None
        self._finalized = False
        self._clear_cache()
        return layers

    def reset(self):
        """
        Lays out the parameter arena for the current layers, binds every
        layer to its slot and resets the cells.

        The parameter values are (re)initialized only when the layout
        changed, so calling it again on an unchanged network keeps the
        trained parameters.
        """
        counts = [layer.get_param_count() for layer in self.layers]
        if self._arena is None or not self._arena.matches(counts):
            self._arena = ParameterArena(counts)
            self._bind_layers()
            self._initialize_parameters()
        else:
            self._bind_layers()
        self._finalized = True
        self.reset_cells()

    def _bind_layers(self):
        for layer, slot in safe_zip(self.layers, self._arena.slots):
            layer.bind(self._arena, slot)

    def _initialize_parameters(self):
        n = len(self._arena)
        values = self.init_rule.initialize(self.rng, (n,))
        self._arena.values[...] = values
        logger.debug("Initialized %d parameters with %s", n, self.init_rule)

    def reset_parameters(self):
        """
        Refills the parameter vector with the initialization rule without
        changing the layout.
        """
        self._ensure_finalized()
        self._initialize_parameters()

    def reset_cells(self):
        """
        Clears the recurrent state of every layer.
        """
        for layer in self.layers:
            layer.reset_cell(self.rho)

    def _ensure_finalized(self):
        if not self.layers:
            raise ValueError("The network has no layers")
        if not self._finalized:
            self.reset()

    def set_deterministic(self, deterministic):
        """
        Switches every layer between training and inference mode.
        """
        self.deterministic = bool(deterministic)
        for layer in self.layers:
            layer.set_deterministic(self.deterministic)

    # Accessors

    @property
    def parameters(self):
        """
        The flat parameter vector. Layers read their parameters from it.
        """
        self._ensure_finalized()
        return self._arena.values

    @parameters.setter
    def parameters(self, value):
        self._ensure_finalized()
        self.set_param_vector(np.asarray(value,
                                         dtype=self._arena.values.dtype))

    def get_param_vector(self):
        return self.parameters

    @property
    def predictors(self):
        """The training predictors, `(feature, example, time_step)`."""
        return self._predictors

    @property
    def responses(self):
        """The training responses, `(feature, example, time_step)`."""
        return self._responses

    def set_data(self, predictors, responses):
        """
        Stores the training sequences after checking their shapes.

        Parameters
        ----------
        predictors : array_like
            Rank-3 array `(feature, example, time_step)`.
        responses : array_like
            Rank-3 array with the same number of examples. It has the same
            number of time steps, or a single one in `single` mode.
        """
        predictors = as_floatX(predictors)
        responses = as_floatX(responses)
        if predictors.ndim != 3 or responses.ndim != 3:
            raise ValueError("Predictors and responses must be rank-3 "
                             "(feature, example, time_step) arrays, got "
                             "shapes %s and %s" %
                             (predictors.shape, responses.shape))
        if predictors.shape[1] != responses.shape[1]:
            raise ValueError("Predictors have %d examples but responses "
                             "have %d" %
                             (predictors.shape[1], responses.shape[1]))
        n_steps, n_response_steps = predictors.shape[2], responses.shape[2]
        if n_steps == 0:
            raise ValueError("Sequences must have at least one time step")
        if n_response_steps != n_steps and \
           not (self.single and n_response_steps == 1):
            raise ValueError("Predictors have %d time steps but responses "
                             "have %d" % (n_steps, n_response_steps))
        self._predictors = predictors
        self._responses = responses

    # Objective contract

    def num_functions(self):
        """
        Returns the number of separable terms of the objective, i.e. the
        number of training examples.
        """
        if self._predictors is None:
            return 0
        return self._predictors.shape[1]

    def shuffle(self):
        """
        Permutes the examples of the predictors and the responses
        together.
        """
        if self._predictors is None:
            return
        permutation = self.rng.permutation(self._predictors.shape[1])
        self._predictors = self._predictors[:, permutation, :]
        self._responses = self._responses[:, permutation, :]

    def _prepare(self, parameters, begin, batch_size):
        """
        Checks the arguments of the objective methods, finalizes the
        network if needed and loads `parameters`.
        """
        if self._predictors is None:
            raise ValueError("No training data; call set_data or train "
                             "first")
        self._ensure_finalized()
        n = self.num_functions()
        if not isinstance(begin, py_integer_types) or \
           not isinstance(batch_size, py_integer_types):
            raise ValueError("begin and batch_size must be integers, got "
                             "%s and %s" % (begin, batch_size))
        if batch_size < 1 or begin < 0 or begin + batch_size > n:
            raise ValueError("Batch [%s, %s) is out of the range of the %d "
                             "examples" % (begin, begin + batch_size, n))
        if parameters is not None:
            self.set_param_vector(parameters)
        begin, batch_size = int(begin), int(batch_size)
        batch = slice(begin, begin + batch_size)
        return self._predictors[:, batch, :], self._responses[:, batch, :]

    def _target(self, responses, step):
        if self.single:
            return responses[:, :, -1]
        return responses[:, :, step]

    def _is_scored(self, step, n_steps):
        return not self.single or step == n_steps - 1

    def _forward_step(self, state_below):
        """
        Feeds one `(feature, batch)` slice through the layers and returns
        the output of every layer.
        """
        outputs = []
        for layer in self.layers:
            state_below = layer.fprop(state_below)
            outputs.append(state_below)
        return outputs

    def evaluate(self, parameters, begin, batch_size, deterministic=True):
        """
        Returns the loss of the examples `[begin, begin + batch_size)`.

        Parameters
        ----------
        parameters : ndarray or None
            Copied into the parameter vector unless it already is that
            vector. None keeps the current parameters.
        begin : int
            Index of the first example.
        batch_size : int
            Number of consecutive examples.
        deterministic : bool, optional
            Inference (True) or training (False) mode.

        Returns
        -------
        loss : float
            Summed over the scored time steps. NaN or Inf signal a
            numerical failure.
        """
        predictors, responses = self._prepare(parameters, begin, batch_size)
        self.set_deterministic(deterministic)
        self.reset_cells()
        n_steps = predictors.shape[2]
        loss = 0.
        for step in range(n_steps):
            outputs = self._forward_step(predictors[:, :, step])
            if self._is_scored(step, n_steps):
                loss += self.output_layer.forward(
                    outputs[-1], self._target(responses, step))
        return loss

    def _check_gradient(self, gradient):
        if gradient is None:
            return self._arena.zeros_like()
        return self._check_vector(gradient, 'gradient')

    def evaluate_with_gradient(self, parameters, begin, gradient,
                               batch_size):
        """
        Returns the loss of the examples `[begin, begin + batch_size)` and
        writes its gradient into `gradient`, in training mode.

        Parameters
        ----------
        parameters : ndarray or None
            See `evaluate`.
        begin : int
            Index of the first example.
        gradient : ndarray
            Vector of the length of the parameters. Overwritten.
        batch_size : int
            Number of consecutive examples.

        Returns
        -------
        loss : float
            See `evaluate`.
        """
        predictors, responses = self._prepare(parameters, begin, batch_size)
        if gradient is None:
            raise ValueError("evaluate_with_gradient needs a gradient "
                             "vector to write into")
        gradient = self._check_gradient(gradient)
        return self._unroll(predictors, responses, gradient)

    def gradient(self, parameters, begin, gradient, batch_size):
        """
        Computes the gradient of the loss of the examples
        `[begin, begin + batch_size)`, in training mode.

        Parameters
        ----------
        parameters : ndarray or None
            See `evaluate`.
        begin : int
            Index of the first example.
        gradient : ndarray or None
            Vector of the length of the parameters, overwritten. None
            allocates a new one.
        batch_size : int
            Number of consecutive examples.

        Returns
        -------
        gradient : ndarray
            The filled gradient vector.
        """
        predictors, responses = self._prepare(parameters, begin, batch_size)
        gradient = self._check_gradient(gradient)
        self._unroll(predictors, responses, gradient)
        return gradient

    def _unroll(self, predictors, responses, gradient):
        """
        Forward, backward and gradient passes over consecutive windows of
        `rho` steps. Returns the loss.
        """
        self.set_deterministic(False)
        self.reset_cells()
        gradient[...] = 0.
        n_steps = predictors.shape[2]
        loss = 0.
        for start in range(0, n_steps, self.rho):
            stop = min(start + self.rho, n_steps)
            self._clear_cache()
            for step in range(start, stop):
                outputs = self._forward_step(predictors[:, :, step])
                self._step_outputs.append(outputs)
                if self._is_scored(step, n_steps):
                    loss += self.output_layer.forward(
                        outputs[-1], self._target(responses, step))
            if not any(self._is_scored(step, n_steps)
                       for step in range(start, stop)):
                # Nothing to propagate; only the carried state matters.
                continue
            self._backward(predictors, responses, start, stop, n_steps)
            self._accumulate(predictors, start, stop, gradient)
        self._clear_cache()
        return loss

    def _backward(self, predictors, responses, start, stop, n_steps):
        """
        Walks the window from its newest to its oldest step and stores the
        error with respect to every layer output.
        """
        self._step_errors = [None] * (stop - start)
        for step in reversed(range(start, stop)):
            outputs = self._step_outputs[step - start]
            if self._is_scored(step, n_steps):
                error = self.output_layer.backward(
                    outputs[-1], self._target(responses, step))
            else:
                error = np.zeros_like(outputs[-1])
            errors = [None] * len(self.layers)
            for index in reversed(range(len(self.layers))):
                errors[index] = error
                error = self.layers[index].bprop(outputs[index], error)
            self._step_errors[step - start] = errors

    def _accumulate(self, predictors, start, stop, gradient):
        """
        Adds the parameter gradient of every step of the window to
        `gradient`, newest step first.
        """
        for step in reversed(range(start, stop)):
            outputs = self._step_outputs[step - start]
            errors = self._step_errors[step - start]
            for index, layer in enumerate(self.layers):
                if index == 0:
                    state_below = predictors[:, :, step]
                else:
                    state_below = outputs[index - 1]
                layer.gradient(state_below, errors[index],
                               self._arena.view(self._arena.slots[index],
                                                gradient))

    # Supplementary entry points

    def train(self, predictors, responses, optimizer=None, callbacks=None):
        """
        Trains the network on the given sequences.

        Parameters
        ----------
        predictors : array_like
            See `set_data`.
        responses : array_like
            See `set_data`.
        optimizer : object, optional
            Anything with an `optimize(function, parameters)` method.
            Defaults to `rnnlearn.training_algorithms.sgd.SGD()`.
        callbacks : list of callable, optional
            Run after every epoch, see
            `rnnlearn.training_algorithms.callbacks`. Only optimizers
            whose `optimize` takes `callbacks` support them.

        Returns
        -------
        objective : float
            The final objective. NaN or Inf if training diverged.
        """
        self.set_data(predictors, responses)
        self._ensure_finalized()
        if optimizer is None:
            from rnnlearn.training_algorithms.sgd import SGD
            optimizer = SGD()
        if callbacks:
            objective = optimizer.optimize(self, self.parameters,
                                           callbacks=callbacks)
        else:
            objective = optimizer.optimize(self, self.parameters)
        if not np.isfinite(objective):
            logger.warning("Training diverged, final objective is %s",
                           objective)
        else:
            logger.info("RNN.train: final objective %f", objective)
        return objective

    def predict(self, predictors, batch_size=256):
        """
        Runs the network in inference mode.

        Parameters
        ----------
        predictors : array_like
            Rank-3 array `(feature, example, time_step)`.
        batch_size : int, optional
            Number of examples fed at once. Cells are reset for every
            batch.

        Returns
        -------
        results : ndarray
            `(output_feature, example, time_step)` outputs of the last
            layer.
        """
        predictors = as_floatX(predictors)
        if predictors.ndim != 3:
            raise ValueError("Predictors must be a rank-3 (feature, "
                             "example, time_step) array, got shape %s" %
                             (predictors.shape,))
        if batch_size < 1:
            raise ValueError("batch_size must be positive, got %s" %
                             batch_size)
        self._ensure_finalized()
        self.set_deterministic(True)
        n_examples, n_steps = predictors.shape[1], predictors.shape[2]
        results = None
        for begin in range(0, n_examples, batch_size):
            batch = slice(begin, min(begin + batch_size, n_examples))
            self.reset_cells()
            for step in range(n_steps):
                output = self._forward_step(predictors[:, batch, step])[-1]
                if results is None:
                    results = np.zeros((output.shape[0], n_examples,
                                        n_steps), dtype=output.dtype)
                results[:, batch, step] = output
        if results is None:
            results = np.zeros((0, n_examples, n_steps),
                               dtype=predictors.dtype)
        return results

    def __str__(self):
        return "RNN(rho=%d, single=%s, layers=[%s])" % (
            self.rho, self.single,
            ', '.join(str(layer) for layer in self.layers))
