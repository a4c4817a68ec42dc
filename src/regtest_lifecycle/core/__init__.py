# src/regtest_lifecycle/core/__init__.py
"""
Core do regtest-lifecycle.

Implementação independente do nó: tudo o que é necessário para declarar,
planejar e executar um grafo de operações nomeadas numa run.

Componentes principais:
    - config   → carregamento e deep-merge de configuração
    - pipeline → protocolo de Step, RunContext e PipelineGraph
    - engine   → planejamento (DAG) e execução controlada
    - errors / exceptions → catálogo de erros e exceções tipadas

Limites explícitos:
    - Não conhece processos de nó nem diretórios de dados
    - Não persiste estado entre runs
"""
