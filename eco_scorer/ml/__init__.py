"""
ML layer: model loading, input encoding and score inference.

Modules
-------
model_store : ModelMetadata, ModelSnapshot and the ModelStore that loads a
              joblib artifact + JSON sidecar and publishes it atomically.
encoder     : encode_features() turns ResolvedFeatures into the ordered
              vector the regressor expects (one-hot / ordinal / numeric).
predictor   : ScorePredictor runs one snapshot's regressor and clamps the
              result to [0, 100].
"""
