"""Puertos del pipeline de envío (Protocol).

Secretos, verificación de identidad, confirmación y transporte HTTP se
inyectan en `DispatchPipeline`; `adapters/` aporta las implementaciones reales
y los tests, sus fakes.
"""
